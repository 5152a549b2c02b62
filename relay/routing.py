import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from .constants import DISCORD_WEBHOOKS_FILE, WEBHOOK_NAMESPACE_ENV_TEMPLATE, WEBHOOK_URL_ENV_PATTERN
from .errors import ConfigError
from .utils import mask_webhook_url

logger = logging.getLogger(__name__)

_URL_KEY_RE = re.compile(WEBHOOK_URL_ENV_PATTERN)


@dataclass(frozen=True)
class WebhookRoute:
    namespace: str
    webhook_url: str
    source: str = "env"


class WebhookRouter:
    """Tabela namespace -> webhook, somente leitura depois do startup. Primeira rota vence."""

    def __init__(self, routes: Iterable[WebhookRoute] = ()):
        self._routes = tuple(routes)

    def __len__(self):
        return len(self._routes)

    def resolve(self, namespace: Optional[str]) -> Optional[str]:
        if namespace is None:
            return None
        for route in self._routes:
            if route.namespace == namespace:
                return route.webhook_url
        return None


def load_routes_from_env(environ: Mapping[str, str]) -> List[WebhookRoute]:
    """
    Procura pares DISCORD_WEBHOOK_<ID>_URL / DISCORD_WEBHOOK_<ID>_NAMESPACE.
    Pares incompletos (qualquer lado vazio ou ausente) são ignorados.
    As chaves são percorridas em ordem alfabética para a ordem das rotas ser estável.
    """
    routes: List[WebhookRoute] = []
    for key in sorted(environ):
        match = _URL_KEY_RE.match(key)
        if not match:
            continue
        namespace_key = WEBHOOK_NAMESPACE_ENV_TEMPLATE.format(match.group(1))
        namespace = environ.get(namespace_key)
        url = environ.get(key)
        if not namespace or not url:
            logger.warning(f"Par incompleto ignorado: {key} / {namespace_key}")
            continue
        routes.append(WebhookRoute(namespace=namespace, webhook_url=url, source=f"env:{key}"))
        logger.info(f"Loaded webhook: {namespace} -> {mask_webhook_url(url)}")
    return routes


def _route_from_entry(entry, index: int, file_path: str) -> WebhookRoute:
    if not isinstance(entry, dict):
        raise ConfigError(f"{file_path}: entrada #{index} deve ser um objeto, recebido {type(entry).__name__}")
    namespace = entry.get("namespace")
    url = entry.get("webhook_url", entry.get("url"))
    if not isinstance(namespace, str) or not namespace.strip():
        raise ConfigError(f"{file_path}: entrada #{index} sem 'namespace' válido")
    if not isinstance(url, str) or not url.strip():
        raise ConfigError(f"{file_path}: entrada #{index} ({namespace}) sem 'webhook_url' válido")
    return WebhookRoute(namespace=namespace, webhook_url=url, source=f"file:{file_path}")


def load_routes_from_file(file_path: str) -> List[WebhookRoute]:
    """
    Lê rotas de um arquivo JSON. Formatos aceitos:
      [{"namespace": "team-a", "webhook_url": "https://..."}, ...]
      {"team-a": "https://...", ...}
    Qualquer problema levanta ConfigError (falha no startup, nada é ignorado em silêncio).
    """
    if not os.path.exists(file_path):
        raise ConfigError(f"Arquivo de rotas não encontrado: {file_path}")
    try:
        with open(file_path, 'r', encoding='utf-8') as fp:
            data = json.load(fp)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{file_path}: JSON inválido ({exc})") from exc
    except OSError as exc:
        raise ConfigError(f"Falha ao ler arquivo de rotas {file_path}: {exc}") from exc

    if isinstance(data, dict):
        entries = [{"namespace": ns, "webhook_url": url} for ns, url in data.items()]
    elif isinstance(data, list):
        entries = data
    else:
        raise ConfigError(f"{file_path}: esperado lista ou objeto, recebido {type(data).__name__}")

    routes = [_route_from_entry(entry, i, file_path) for i, entry in enumerate(entries)]
    for route in routes:
        logger.info(f"Loaded webhook: {route.namespace} -> {mask_webhook_url(route.webhook_url)} ({file_path})")
    return routes


def build_router(environ: Optional[Mapping[str, str]] = None, routes_file: Optional[str] = DISCORD_WEBHOOKS_FILE) -> WebhookRouter:
    environ = os.environ if environ is None else environ
    routes = load_routes_from_env(environ)
    if routes_file:
        routes.extend(load_routes_from_file(routes_file))
    if not routes:
        logger.warning("Nenhum webhook do Discord configurado; todos os eventos serão descartados")
    logger.info(f"All loaded webhooks: {[r.namespace for r in routes]}")
    return WebhookRouter(routes)
