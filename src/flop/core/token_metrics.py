"""
FLOP Token Metrics

Prometheus metrics for transfers, fee routing, burns, airdrops and the
XP system. Pass a dedicated CollectorRegistry to keep instances isolated
(tests, multiple tokens in one process).
"""

from prometheus_client import REGISTRY, Counter, Gauge


class TokenMetrics:
    """Metrics for FLOP token operations."""

    def __init__(self, registry=None):
        self.registry = registry or REGISTRY

        # Transfer metrics
        self.transfers_total = Counter(
            'flop_transfers_total',
            'Total number of fee-bearing transfers',
            ['kind'],
            registry=self.registry
        )

        self.transfer_volume = Counter(
            'flop_transfer_volume_total',
            'Gross transfer volume in base units',
            registry=self.registry
        )

        self.fees_collected = Counter(
            'flop_fees_collected_total',
            'Fee shares routed per destination in base units',
            ['destination'],
            registry=self.registry
        )

        self.total_supply = Gauge(
            'flop_total_supply',
            'Current total supply in base units',
            registry=self.registry
        )

        # Airdrop metrics
        self.airdrop_batches = Counter(
            'flop_airdrop_batches_total',
            'Airdrop batches by outcome',
            ['status'],
            registry=self.registry
        )

        self.airdrop_recipients = Counter(
            'flop_airdrop_recipients_total',
            'Recipients credited by successful airdrops',
            registry=self.registry
        )

        # XP metrics
        self.xp_granted = Counter(
            'flop_xp_granted_total',
            'XP credited by source',
            ['source'],
            registry=self.registry
        )

        self.xp_spent = Counter(
            'flop_xp_spent_total',
            'XP spent',
            registry=self.registry
        )

        self.predictions_total = Counter(
            'flop_predictions_total',
            'Predictions placed',
            registry=self.registry
        )

    def record_transfer(self, kind: str, split, total_supply: int) -> None:
        """Record a completed fee transfer and its fee shares."""
        self.transfers_total.labels(kind=kind).inc()
        self.transfer_volume.inc(split.amount)
        if split.burn_amount:
            self.fees_collected.labels(destination="burn").inc(split.burn_amount)
        if split.prediction_pool_amount:
            self.fees_collected.labels(destination="prediction_pool").inc(split.prediction_pool_amount)
        if split.buyback_amount:
            self.fees_collected.labels(destination="buyback").inc(split.buyback_amount)
        self.total_supply.set(total_supply)

    def record_airdrop(self, status: str, recipients: int = 0) -> None:
        self.airdrop_batches.labels(status=status).inc()
        if recipients:
            self.airdrop_recipients.inc(recipients)

    def record_xp_grant(self, source: str, amount: int) -> None:
        if amount:
            self.xp_granted.labels(source=source).inc(amount)

    def record_xp_spend(self, amount: int) -> None:
        if amount:
            self.xp_spent.inc(amount)

    def record_prediction(self) -> None:
        self.predictions_total.inc()
