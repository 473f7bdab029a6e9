from __future__ import annotations

import pytest

from fakes import FakeNcloudClient, api_error, server_instance

from ncloud_provider import resource_server
from ncloud_provider.api_client import NcloudApiError
from ncloud_provider.config import ProviderConfig
from ncloud_provider.provider import DATA_SOURCES, RESOURCES, PartialStateError, Provider, Resource
from ncloud_provider.retry import WaitTimeoutError


@pytest.fixture(autouse=True)
def _no_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(resource_server, "WAIT_INTERVAL", 0)
    monkeypatch.setattr(resource_server, "_sleep", lambda seconds: None)


def _provider(client: FakeNcloudClient) -> Provider:
    cfg = ProviderConfig(access_key="ak", secret_key="sk", create_timeout=5, default_timeout=5)
    return Provider(cfg, client=client)  # type: ignore[arg-type]


def test_validate_collects_all_errors() -> None:
    res = RESOURCES["ncloud_server"]
    with pytest.raises(ValueError) as excinfo:
        res.validate(
            {
                "server_name": "x-",
                "internet_line_type_code": "LOCAL",
                "zone_code": "KR-1",
                "zone_no": "2",
                "access_control_group_configuration_no_list": [],
            }
        )

    message = str(excinfo.value)
    assert "server name" in message
    assert "PUBLC" in message
    assert "conflicts with zone_no" in message
    assert "1 item minimum" in message
    assert "server_image_product_code" in message


def test_data_source_validate_rejects_bad_regex() -> None:
    with pytest.raises(ValueError):
        DATA_SOURCES["ncloud_member_server_images"].validate({"member_server_image_name_regex": "("})


def test_unknown_resource_name_lists_allowed() -> None:
    provider = _provider(FakeNcloudClient())
    with pytest.raises(KeyError) as excinfo:
        provider.resource("ncloud_vpc")
    assert "ncloud_server" in str(excinfo.value)


def test_apply_creates_then_updates() -> None:
    client = FakeNcloudClient()
    provider = _provider(client)
    config = {"server_image_product_code": "SPSW0LINUX000032", "server_product_code": "SPSVRSTAND000003"}

    state = provider.apply("ncloud_server", config, None)
    assert state is not None
    assert state["id"] == "100"
    assert "timeouts" not in state

    config2 = dict(config, server_product_code="SPSVRSTAND000005")
    state2 = provider.apply("ncloud_server", config2, state)
    assert state2 is not None
    assert state2["server_product_code"] == "SPSVRSTAND000005"
    assert client.actions().count("createServerInstances") == 1
    assert "changeServerInstanceSpec" in client.actions()


def test_config_timeouts_override_provider_defaults() -> None:
    provider = _provider(FakeNcloudClient())
    res = provider.resource("ncloud_server")

    d = provider._resource_data(res, {"timeouts": {"create": "2m"}})

    assert d.timeout("create") == 120.0
    assert d.timeout("delete") == 5.0


def test_refresh_returns_none_when_gone() -> None:
    provider = _provider(FakeNcloudClient())
    assert provider.refresh("ncloud_server", {"id": "404"}) is None


def test_import_reads_existing_instance() -> None:
    client = FakeNcloudClient()
    client.instances["100"] = server_instance("100")
    provider = _provider(client)

    state = provider.import_resource("ncloud_server", "100")

    assert state is not None
    assert state["server_name"] == "web-1"
    assert state["cpu_count"] == 2


def test_destroy_without_id_is_noop() -> None:
    client = FakeNcloudClient()
    _provider(client).destroy("ncloud_server", {})
    assert client.calls == []


def test_apply_keeps_id_when_create_wait_times_out() -> None:
    client = FakeNcloudClient()
    client.boot_hangs = True
    cfg = ProviderConfig(access_key="ak", secret_key="sk", create_timeout=0.2, default_timeout=5)
    provider = Provider(cfg, client=client)  # type: ignore[arg-type]

    with pytest.raises(PartialStateError) as excinfo:
        provider.apply("ncloud_server", {"server_image_product_code": "SPSW0LINUX000032"}, None)

    assert excinfo.value.state["id"] == "100"
    assert isinstance(excinfo.value.__cause__, WaitTimeoutError)


def test_apply_create_error_before_id_is_not_partial() -> None:
    client = FakeNcloudClient()
    client.errors["createServerInstances"] = [api_error("10001")]

    with pytest.raises(NcloudApiError):
        _provider(client).apply("ncloud_server", {"server_image_product_code": "SPSW0LINUX000032"}, None)


def test_lifecycle_without_handler_raises_value_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(RESOURCES, "ncloud_readonly", Resource(name="ncloud_readonly", read=lambda d, c: None))
    provider = _provider(FakeNcloudClient())

    with pytest.raises(ValueError, match="생성을 지원하지 않습니다"):
        provider.apply("ncloud_readonly", {}, None)
    with pytest.raises(ValueError, match="변경을 지원하지 않습니다"):
        provider.apply("ncloud_readonly", {}, {"id": "1"})
    with pytest.raises(ValueError, match="삭제를 지원하지 않습니다"):
        provider.destroy("ncloud_readonly", {"id": "1"})
