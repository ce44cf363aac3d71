from django.conf import settings
from django.core.checks import Error, register

REQUIRED_SETTINGS = (
    ('FIREBASE_SERVICE_ACCOUNT_JSON', 'vault.E001'),
    ('S3_BUCKET', 'vault.E002'),
    ('AWS_REGION', 'vault.E003'),
)


@register('vault', deploy=True)
def check_required_settings(app_configs, **kwargs):
    """
    Report every required environment-backed setting that is unset
    """
    errors = []
    for name, error_id in REQUIRED_SETTINGS:
        if not getattr(settings, name, None):
            errors.append(Error(
                f'{name} is not set',
                hint=f'Export {name} or add it to the .env file.',
                id=error_id,
            ))
    return errors
