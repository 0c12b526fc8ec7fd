import pytest

from modelcheck import config as config_impl
from modelcheck import schema


@pytest.fixture(autouse=True)
def config(monkeypatch):
    monkeypatch.delenv(config_impl.CATALOG_ENV, raising=False)
    # generated record kinds must not leak rules between tests
    monkeypatch.setattr(schema, "schema_map", {})
    cfg = config_impl._set_config(config_impl.Config())
    yield cfg
    config_impl._set_config(None)
