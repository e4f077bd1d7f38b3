import os
import tempfile

# logs fora da árvore do pacote durante os testes (antes de importar devis)
os.environ.setdefault("DEVIS_LOGS_DIR", tempfile.mkdtemp(prefix="devis-logs-"))

import pytest

from devis.domain.models import (
    Currency,
    LocalTransportLeg,
    Quote,
    ShippingOption,
    ShippingType,
)
from devis.infra.migrations import apply_migrations
from devis.infra.views import create_views


RATES = {"EUR": 1.0, "USD": 1.1, "XOF": 655.957}


@pytest.fixture
def rates():
    return dict(RATES)


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "devis_test.sqlite")
    apply_migrations(path)
    create_views(path)
    return path


def make_quote(**overrides) -> Quote:
    """Devis de referência: 1000 x 5 EUR, 0,1 kg, avião 200 + 50, camião 100."""
    data = dict(
        supplier_name="Shenzhen Bags Co",
        product_name="Sac en toile",
        unit_price=5.0,
        weight_kg=0.1,
        quantity=1000,
        currency=Currency.EUR,
        shipping_options={
            ShippingType.DIRECT_AIR: ShippingOption(shipping_cost=200.0, delivery_cost=50.0),
        },
        local_transport=[LocalTransportLeg(name="Camion Dakar", cost=100.0)],
    )
    data.update(overrides)
    return Quote(**data)


@pytest.fixture
def quote():
    return make_quote()
