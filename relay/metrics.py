from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

from .constants import SUPPORTED_EVENTS

DELIVERY_OUTCOMES = ('delivered', 'failed', 'skipped')


def delivery_outcome(result):
    if result.skipped:
        return 'skipped'
    if result.delivered:
        return 'delivered'
    return 'failed'


class RelayMetrics:
    """Métricas do relay, num registry próprio por app (testes não compartilham contadores)."""

    def __init__(self, registry=None):
        self.registry = registry or CollectorRegistry()
        self.deliveries_total = Counter(
            'discord_deliveries_total',
            'Entregas para o Discord por resultado',
            ['outcome'],
            registry=self.registry
        )
        self.deliveries_attempts_total = Counter(
            'discord_delivery_attempts_total',
            'Tentativas de POST para o Discord',
            registry=self.registry
        )
        self.events_received_total = Counter(
            'gitlab_events_received_total',
            'Eventos GitLab recebidos por tipo e status HTTP',
            ['object_kind', 'status'],
            registry=self.registry
        )
        # Inicializa as séries para aparecerem zeradas no /metrics e no /health
        for outcome in DELIVERY_OUTCOMES:
            self.deliveries_total.labels(outcome)

    def record_delivery(self, result):
        self.deliveries_total.labels(delivery_outcome(result)).inc()
        if result.attempts:
            self.deliveries_attempts_total.inc(result.attempts)

    def record_event(self, object_kind, status):
        # kinds fora da lista viram 'unsupported' para não explodir a cardinalidade
        kind = object_kind if object_kind in SUPPORTED_EVENTS else 'unsupported'
        self.events_received_total.labels(kind, str(status)).inc()

    def delivery_counts(self):
        return {
            outcome: int(self.registry.get_sample_value('discord_deliveries_total', {'outcome': outcome}) or 0)
            for outcome in DELIVERY_OUTCOMES
        }

    def export(self):
        return generate_latest(self.registry)

    def content_type(self):
        return CONTENT_TYPE_LATEST
