"""
Checklist templates for Song Workflow system.

Built-in templates define the checklist items for each workflow stage. They
are loaded into ChecklistTemplate rows (``seed_checklist_templates``
management command, or lazily the first time a stage is started) and can be
edited in the admin afterwards.
"""

import logging

from django.db import transaction

logger = logging.getLogger(__name__)


# Publishing Stage Checklist
PUBLISHING_CHECKLIST_TEMPLATE = [
    {
        'category': 'Work Setup',
        'item_name': 'Work entity created',
        'description': 'Create a Work and link it to this song',
        'required': True,
        'validation_type': 'auto_entity_exists',
        'validation_rule': {'entity': 'work'},
        'help_text': 'Go to Works section and click "Create Work"',
        'order': 1,
    },
    {
        'category': 'Work Setup',
        'item_name': 'ISWC assigned',
        'description': 'Work must have an ISWC code',
        'required': True,
        'validation_type': 'auto_field_exists',
        'validation_rule': {'entity': 'work', 'field': 'iswc'},
        'help_text': 'ISWC can be assigned automatically or requested from registry',
        'order': 2,
    },
    {
        'category': 'Writers',
        'item_name': 'Writer information collected',
        'description': 'Collect legal names, IPI numbers and shares of every writer',
        'required': True,
        'validation_type': 'manual',
        'has_task_inputs': True,
        'task_type': 'registration',
        'input_fields': [
            {'name': 'writers', 'label': 'Writers (name, IPI, share)', 'type': 'textarea', 'required': True},
            {'name': 'notes', 'label': 'Notes', 'type': 'textarea', 'required': False},
        ],
        'order': 3,
    },
    {
        'category': 'Legal',
        'item_name': 'Publishing agreements uploaded',
        'description': 'Upload signed agreements with writers and publishers',
        'required': True,
        'validation_type': 'manual',
        'help_text': 'Paste the link to the signed PDF in the asset URL field',
        'order': 4,
    },
]

# Label Recording Stage Checklist (song level)
LABEL_RECORDING_CHECKLIST_TEMPLATE = [
    {
        'category': 'Recording Setup',
        'item_name': 'Recording entity created',
        'description': 'Create at least one Recording and link it to this song',
        'required': True,
        'validation_type': 'auto_entity_exists',
        'validation_rule': {'entity': 'recording'},
        'order': 1,
    },
    {
        'category': 'Legal',
        'item_name': 'Production contracts uploaded',
        'description': 'Upload signed contracts with producers and featured artists',
        'required': True,
        'validation_type': 'manual',
        'order': 2,
    },
]

# Per-recording checklist template (attached to each recording)
RECORDING_CHECKLIST_TEMPLATE = [
    {
        'category': 'Recording Setup',
        'item_name': 'ISRC assigned',
        'description': 'Recording must have an ISRC code',
        'required': True,
        'validation_type': 'auto_field_exists',
        'validation_rule': {'entity': 'recording', 'field': 'isrc'},
        'order': 1,
    },
    {
        'category': 'Audio Files',
        'item_name': 'Master audio uploaded',
        'description': 'Link the final master audio file',
        'required': True,
        'validation_type': 'auto_file_exists',
        'validation_rule': {'entity': 'recording', 'file_field': 'audio_master_url'},
        'help_text': 'Must be WAV or FLAC, minimum 16-bit/44.1kHz',
        'order': 2,
    },
    {
        'category': 'Audio Files',
        'item_name': 'Mix approved',
        'description': 'Producer and A&R sign-off on the final mix',
        'required': True,
        'validation_type': 'manual',
        'has_task_inputs': True,
        'requires_review': True,
        'task_type': 'mixing',
        'input_fields': [
            {'name': 'mix_url', 'label': 'Mix link', 'type': 'url', 'required': True},
            {'name': 'engineer', 'label': 'Mix engineer', 'type': 'text', 'required': False},
        ],
        'order': 3,
    },
    {
        'category': 'Legal',
        'item_name': 'Master rights cleared',
        'description': 'Confirm all master rights are cleared and owned',
        'required': True,
        'validation_type': 'manual',
        'help_text': 'Check for any samples or interpolations that need clearance',
        'order': 4,
    },
]

# Marketing Assets Stage Checklist
MARKETING_ASSETS_CHECKLIST_TEMPLATE = [
    {
        'category': 'Core Assets',
        'item_name': 'Cover artwork uploaded',
        'description': 'Upload primary cover artwork (minimum 3000x3000px)',
        'required': True,
        'validation_type': 'manual',
        'help_text': 'Must be JPG or PNG, RGB color mode, no watermarks',
        'order': 1,
    },
    {
        'category': 'Core Assets',
        'item_name': 'Marketing copy written',
        'description': 'Write press release and promotional copy',
        'required': True,
        'validation_type': 'manual',
        'has_task_inputs': True,
        'requires_review': True,
        'task_type': 'content_creation',
        'input_fields': [
            {'name': 'press_release', 'label': 'Press release', 'type': 'textarea', 'required': True},
            {'name': 'short_bio', 'label': 'Short artist bio', 'type': 'textarea', 'required': False},
        ],
        'order': 2,
    },
    {
        'category': 'Instagram',
        'item_name': 'Instagram Reels created',
        'description': 'Create three Instagram Reels (9:16 vertical video, 15-90s)',
        'required': True,
        'validation_type': 'manual',
        'quantity': 3,
        'task_type': 'content_creation',
        'input_fields': [
            {'name': 'reel_url', 'label': 'Reel link', 'type': 'url', 'required': True},
        ],
        'help_text': 'Vertical video, hook in first 3 seconds, captions',
        'order': 10,
    },
    {
        'category': 'Instagram',
        'item_name': 'Instagram Story graphics created',
        'description': 'Create 3-5 Instagram Story slides (1080x1920px)',
        'required': False,
        'validation_type': 'manual',
        'order': 11,
    },
    {
        'category': 'YouTube',
        'item_name': 'YouTube video thumbnail created',
        'description': 'Create custom YouTube thumbnail (1280x720px)',
        'required': True,
        'validation_type': 'manual',
        'order': 20,
    },
    {
        'category': 'TikTok',
        'item_name': 'TikTok videos created',
        'description': 'Create two TikTok promotional videos (9:16 vertical, 15-60s)',
        'required': True,
        'validation_type': 'manual',
        'quantity': 2,
        'requires_review': True,
        'task_type': 'content_creation',
        'input_fields': [
            {'name': 'video_url', 'label': 'Video link', 'type': 'url', 'required': True},
        ],
        'order': 30,
    },
]

# Label Review Stage Checklist
LABEL_REVIEW_CHECKLIST_TEMPLATE = [
    {
        'category': 'Asset Review',
        'item_name': 'Cover artwork approved',
        'description': 'Review and approve cover artwork quality and design',
        'required': True,
        'validation_type': 'manual',
        'order': 1,
    },
    {
        'category': 'Asset Review',
        'item_name': 'Promotional materials approved',
        'description': 'Review social media graphics and other promo materials',
        'required': True,
        'validation_type': 'manual',
        'order': 2,
    },
    {
        'category': 'Technical Check',
        'item_name': 'All assets meet technical specs',
        'description': 'Verify dimensions, formats, color modes',
        'required': True,
        'validation_type': 'manual',
        'order': 3,
    },
]

# Ready for Digital Stage Checklist
READY_FOR_DIGITAL_CHECKLIST_TEMPLATE = [
    {
        'category': 'Release Strategy',
        'item_name': 'Release strategy defined',
        'description': 'Single, EP, or Album? Pre-save campaign?',
        'required': True,
        'validation_type': 'manual',
        'order': 1,
    },
    {
        'category': 'Release Strategy',
        'item_name': 'Target release date set',
        'description': 'Set official release date',
        'required': True,
        'validation_type': 'auto_field_exists',
        'validation_rule': {'entity': 'song', 'field': 'target_release_date'},
        'order': 2,
    },
    {
        'category': 'Release Strategy',
        'item_name': 'Distribution platforms selected',
        'description': 'Choose which platforms to distribute to',
        'required': True,
        'validation_type': 'manual',
        'order': 3,
    },
]

# Digital Distribution Stage Checklist
DIGITAL_DISTRIBUTION_CHECKLIST_TEMPLATE = [
    {
        'category': 'Release Setup',
        'item_name': 'Release entity created',
        'description': 'Create Release in system',
        'required': True,
        'validation_type': 'auto_entity_exists',
        'validation_rule': {'entity': 'release'},
        'order': 1,
    },
    {
        'category': 'Release Setup',
        'item_name': 'UPC/EAN assigned',
        'description': 'Assign barcode to release',
        'required': True,
        'validation_type': 'auto_field_exists',
        'validation_rule': {'entity': 'release', 'field': 'upc'},
        'order': 2,
    },
    {
        'category': 'Release Setup',
        'item_name': 'Release artwork linked',
        'description': 'Final artwork attached to the release',
        'required': True,
        'validation_type': 'auto_file_exists',
        'validation_rule': {'entity': 'release', 'file_field': 'artwork_url'},
        'order': 3,
    },
    {
        'category': 'Distribution',
        'item_name': 'Submitted to distributors',
        'description': 'Submit release package to distribution partners',
        'required': True,
        'validation_type': 'manual',
        'order': 4,
    },
    {
        'category': 'Pre-release',
        'item_name': 'Pre-save links generated',
        'description': 'Generate pre-save campaign links (if applicable)',
        'required': False,
        'validation_type': 'manual',
        'order': 5,
    },
]

# Template mapping by stage (song level)
CHECKLIST_TEMPLATES = {
    'draft': [],
    'publishing': PUBLISHING_CHECKLIST_TEMPLATE,
    'label_recording': LABEL_RECORDING_CHECKLIST_TEMPLATE,
    'marketing_assets': MARKETING_ASSETS_CHECKLIST_TEMPLATE,
    'label_review': LABEL_REVIEW_CHECKLIST_TEMPLATE,
    'ready_for_digital': READY_FOR_DIGITAL_CHECKLIST_TEMPLATE,
    'digital_distribution': DIGITAL_DISTRIBUTION_CHECKLIST_TEMPLATE,
    'released': [],
    'archived': [],
}

# Recording-level templates by stage
RECORDING_CHECKLIST_TEMPLATES = {
    'label_recording': RECORDING_CHECKLIST_TEMPLATE,
}

TEMPLATE_ITEM_FIELDS = (
    'category', 'item_name', 'description', 'help_text', 'order', 'required',
    'validation_type', 'validation_rule', 'has_task_inputs', 'requires_review',
    'quantity', 'task_type', 'input_fields',
)


def _builtin_definitions(stage=None):
    from catalog.models import WORKFLOW_STAGES

    labels = dict(WORKFLOW_STAGES)
    for entity_type, mapping in (('song', CHECKLIST_TEMPLATES), ('recording', RECORDING_CHECKLIST_TEMPLATES)):
        for template_stage, items in mapping.items():
            if not items or (stage and template_stage != stage):
                continue
            suffix = 'Recording Checklist' if entity_type == 'recording' else 'Checklist'
            yield {
                'name': f"{labels[template_stage]} {suffix}",
                'stage': template_stage,
                'entity_type': entity_type,
                'items': items,
            }


@transaction.atomic
def seed_builtin_templates(stage=None):
    """
    Load built-in templates into ChecklistTemplate rows.

    Existing templates are left alone; only missing items (matched by
    item_name) are added.

    Returns:
        tuple: (templates_created, items_created)
    """
    from catalog.models import ChecklistTemplate, ChecklistTemplateItem

    templates_created = 0
    items_created = 0
    for definition in _builtin_definitions(stage):
        template, created = ChecklistTemplate.objects.get_or_create(
            name=definition['name'],
            stage=definition['stage'],
            entity_type=definition['entity_type'],
        )
        templates_created += int(created)

        existing = set(template.items.values_list('item_name', flat=True))
        for item in definition['items']:
            if item['item_name'] in existing:
                continue
            values = {field: item[field] for field in TEMPLATE_ITEM_FIELDS if field in item}
            ChecklistTemplateItem.objects.create(template=template, **values)
            items_created += 1

    logger.info(f"Seeded checklist templates: {templates_created} templates, {items_created} items")
    return templates_created, items_created


def build_checklist_item(song, template_item, recording=None):
    """Unsaved SongChecklistItem copied from a template item."""
    from catalog.models import SongChecklistItem

    return SongChecklistItem(
        song=song,
        recording=recording,
        template_item=template_item,
        stage=template_item.template.stage,
        category=template_item.category,
        item_name=template_item.item_name,
        description=template_item.description,
        help_text=template_item.help_text,
        order=template_item.order,
        required=template_item.required,
        validation_type=template_item.validation_type,
        validation_rule=template_item.validation_rule or {},
        is_complete=False,
    )


def attach_template(song, template):
    """
    Attach a template's items to a song.

    Recording templates are attached once per recording linked to the song.
    Items already attached (same template item and recording) are skipped,
    so attaching twice is harmless.

    Returns:
        list: created SongChecklistItem instances
    """
    from catalog.models import SongChecklistItem

    if template.entity_type == 'recording':
        targets = list(song.recordings.all())
    else:
        targets = [None]

    attached = set(
        song.checklist_items.filter(template_item__template=template)
        .values_list('template_item_id', 'recording_id')
    )

    new_items = []
    for recording in targets:
        recording_id = recording.id if recording else None
        for template_item in template.items.all():
            if (template_item.id, recording_id) in attached:
                continue
            new_items.append(build_checklist_item(song, template_item, recording))

    created = SongChecklistItem.objects.bulk_create(new_items)
    if created:
        logger.info(f"Attached {len(created)} items from template '{template.name}' to song {song.id}")
    return created


def generate_checklist_for_stage(song, stage):
    """
    Attach the default templates of ``stage`` to a song.

    Built-in templates are seeded first when the stage has none in the
    database yet.

    Returns:
        list: created SongChecklistItem instances
    """
    from catalog.models import ChecklistTemplate

    templates = ChecklistTemplate.objects.filter(stage=stage, is_default=True, is_active=True)
    if not templates.exists() and not ChecklistTemplate.objects.filter(stage=stage).exists():
        seed_builtin_templates(stage)

    created = []
    for template in templates.prefetch_related('items'):
        created.extend(attach_template(song, template))
    return created


def attach_recording_templates(song):
    """Attach recording-level templates of stages already started on the song."""
    from catalog.models import ChecklistTemplate

    started = song.stage_statuses.exclude(status='not_started').values_list('stage', flat=True)
    templates = ChecklistTemplate.objects.filter(
        entity_type='recording', stage__in=list(started), is_default=True, is_active=True
    )

    created = []
    for template in templates.prefetch_related('items'):
        created.extend(attach_template(song, template))
    return created
