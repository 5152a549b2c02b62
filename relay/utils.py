import re
from datetime import datetime, timezone
from typing import Optional


def _is_meaningful(value):
    if value is None:
        return False
    return str(value).strip() != ""


def pick_first_nonempty(*candidates):
    for c in candidates:
        if _is_meaningful(c):
            return str(c)
    return None


def truncate(value, limit: int) -> str:
    if value is None:
        return ""
    return str(value)[:limit]


def mask_webhook_url(url: Optional[str]) -> str:
    """Esconde o token do webhook (último segmento) antes de logar."""
    if not url:
        return "<none>"
    match = re.match(r'^(https?://[^?#]*/webhooks/[^/]+)/[^/?#]+', url)
    if match:
        return f"{match.group(1)}/***"
    return url


def parse_gitlab_timestamp(timestamp_str) -> Optional[datetime]:
    """
    Converte timestamps do GitLab para datetime com timezone.
    Aceita ISO-8601 ('2011-12-12T14:27:31+02:00', '...Z') e o formato antigo
    '2013-12-03 17:23:34 UTC'. Sem timezone assume UTC. Retorna None se não reconhecer.
    """
    if not timestamp_str or not isinstance(timestamp_str, str):
        return None
    raw = timestamp_str.strip()
    if raw.endswith(' UTC'):
        raw = raw[:-4] + '+00:00'
    elif raw.endswith('Z'):
        raw = raw[:-1] + '+00:00'
    # ' +0200' -> '+02:00'
    raw = re.sub(r'\s*([+-]\d{2}):?(\d{2})$', r'\1:\2', raw)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso_utc(dt: datetime) -> str:
    utc = dt.astimezone(timezone.utc)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def format_timestamp(timestamp_str):
    """Texto legível para rodapés; devolve o valor cru quando não reconhece o formato."""
    parsed = parse_gitlab_timestamp(timestamp_str)
    if parsed is None:
        return timestamp_str if timestamp_str else 'N/A'
    return parsed.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
