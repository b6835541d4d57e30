import logging

from django.db import transaction

from apps.core.users.models import AuditLog


logger = logging.getLogger(__name__)


def _extract_ip(request):
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_audit_event(request, action, target=None, details='', user=None):
    try:
        target_model = ''
        target_id = ''

        if target is not None:
            target_model = target.__class__.__name__
            target_id = str(getattr(target, 'pk', ''))

        user = user or getattr(request, 'user', None)
        if user is not None and not user.is_authenticated:
            user = None

        with transaction.atomic():
            AuditLog.objects.create(
                user=user,
                action=action,
                target_model=target_model,
                target_id=target_id,
                details=details,
                method=request.method or '',
                path=(request.path or '')[:255],
                ip_address=_extract_ip(request),
            )
    except Exception:
        # Audit writes must never break business actions.
        logger.warning('Could not record audit event %s', action, exc_info=True)
