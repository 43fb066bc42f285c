import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ledger_bed():
    from stockledger.domain import ledger

    bed = DomainFixture(ledger)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ledger_bed):
    with ledger_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def ledger_domain(ledger_bed):
    """The stockledger domain, for tests that push their own contexts in threads."""
    from stockledger.domain import ledger

    return ledger


@pytest.fixture()
def lines_json():
    def _lines(*pairs, key="component_id"):
        return json.dumps([{key: ident, "quantity": quantity} for ident, quantity in pairs])

    return _lines
