import json
import logging
import uuid

from flask import Flask, Response, request

from .constants import (
    DEBUG_MODE,
    LOG_LEVEL,
    MSG_INVALID_JSON,
    MSG_INVALID_PAYLOAD,
    MSG_PROCESSED,
    MSG_UNSUPPORTED,
    SERVICE_NAME,
)
from .errors import PayloadValidationError
from .formatters import EVENT_FORMATTERS
from .metrics import RelayMetrics
from .routing import build_router
from .services import RetryPolicy, send_discord_payload
from .validation import validate_payload

logger = logging.getLogger(__name__)


def configure_logging(level=LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _request_id():
    # GitLab envia um UUID por entrega; usa ele para correlacionar os logs
    return request.headers.get('X-Gitlab-Event-UUID') or uuid.uuid4().hex[:12]


def create_app(router=None, sender=send_discord_payload, retry_policy=None, metrics=None):
    app = Flask(__name__)
    # Tabela de rotas carregada uma vez; falha no startup se o arquivo de rotas for inválido
    router = router if router is not None else build_router()
    retry_policy = retry_policy or RetryPolicy.from_env()
    metrics = metrics or RelayMetrics()
    app.extensions['relay_metrics'] = metrics

    @app.route('/health', methods=['GET'])
    def health():
        return {
            'status': 'ok',
            'service': SERVICE_NAME,
            'routes': len(router),
            'deliveries': metrics.delivery_counts(),
        }, 200

    @app.route('/metrics', methods=['GET'])
    def prometheus_metrics():
        return Response(metrics.export(), mimetype=metrics.content_type())

    @app.route('/webhook', methods=['POST'])
    def webhook():
        request_id = _request_id()
        headers = {'X-Request-ID': request_id}

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            logger.info(f"[req={request_id}] Corpo da requisição não é um objeto JSON")
            metrics.record_event(None, 400)
            return {'message': MSG_INVALID_JSON}, 400, headers

        if DEBUG_MODE:
            logger.debug(f"[req={request_id}] Received data: {json.dumps(payload)[:500]}")

        object_kind = payload.get('object_kind')
        # object_kind pode vir como lista/objeto; não é chave válida do dict
        formatter = EVENT_FORMATTERS.get(object_kind) if isinstance(object_kind, str) else None
        if formatter is None:
            logger.info(f"[req={request_id}] Unhandled event type: {object_kind!r}")
            metrics.record_event(object_kind, 400)
            return {'message': MSG_UNSUPPORTED}, 400, headers

        try:
            validate_payload(payload)
        except PayloadValidationError as exc:
            logger.warning(f"[req={request_id}] Payload {object_kind} inválido: {exc}")
            metrics.record_event(object_kind, 422)
            return {'message': MSG_INVALID_PAYLOAD, 'errors': exc.errors}, 422, headers

        namespace = payload['project'].get('namespace')
        webhook_url = router.resolve(namespace)
        if webhook_url is None:
            logger.info(f"[req={request_id}] Namespace sem webhook configurado: {namespace}")

        message = formatter(payload)
        result = sender(webhook_url, message, retry_policy=retry_policy, request_id=request_id)
        metrics.record_delivery(result)
        metrics.record_event(object_kind, 200)
        logger.info(
            f"[req={request_id}] {object_kind} namespace={namespace} delivered={result.delivered} "
            f"attempts={result.attempts} reason={result.reason}"
        )

        return {'message': MSG_PROCESSED}, 200, headers

    return app
