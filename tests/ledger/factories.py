"""Record builders shared by the ledger tests."""

from ledger.codec import encode_rate_attributes
from ledger.models import Metric, MetricType


STTOKEN_DENOM = "stdenom"


def make_rate_metric(
    key: str,
    value: str,
    time: int,
    metric_type: MetricType = MetricType.redemption_rate(),
    denom: str = STTOKEN_DENOM,
) -> Metric:
    """Rate metric whose block height equals its time."""
    return Metric(
        key=key,
        value=value,
        metric_type=metric_type,
        update_time=time,
        block_height=time,
        attributes=encode_rate_attributes(denom),
    )


def submit(dispatcher, metric: Metric) -> Metric:
    """Post an already-built metric through a dispatcher."""
    return dispatcher.submit(
        key=metric.key,
        value=metric.value,
        metric_type=metric.metric_type,
        update_time=metric.update_time,
        block_height=metric.block_height,
        attributes=metric.attributes,
    )
