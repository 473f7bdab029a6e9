from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from fakes import FakeNcloudClient, server_instance

from ncloud_provider import cli, resource_server
from ncloud_provider.cli import main
from ncloud_provider.config import ProviderConfig
from ncloud_provider.provider import Provider


@pytest.fixture(autouse=True)
def _no_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(resource_server, "WAIT_INTERVAL", 0)
    monkeypatch.setattr(resource_server, "_sleep", lambda seconds: None)
    # stdout(JSON) 에 로그가 섞이지 않도록
    monkeypatch.setattr(cli, "setup_logging", lambda verbosity: None)


def _obj(client: FakeNcloudClient) -> dict:
    cfg = ProviderConfig(access_key="ak", secret_key="sk", create_timeout=5, default_timeout=5)
    return {"provider": Provider(cfg, client=client)}  # type: ignore[arg-type]


def test_validate_reports_errors(tmp_path) -> None:
    cfg = tmp_path / "server.json"
    cfg.write_text(json.dumps({"server_name": "x"}), encoding="utf-8")

    result = CliRunner().invoke(main, ["validate", "ncloud_server", "-c", str(cfg)])

    assert result.exit_code == 1
    assert "[ERROR]" in result.output


def test_apply_then_destroy_round_trip(tmp_path) -> None:
    client = FakeNcloudClient()
    cfg = tmp_path / "server.json"
    cfg.write_text(json.dumps({"server_image_product_code": "SPSW0LINUX000032"}), encoding="utf-8")
    state_path = tmp_path / "state.json"
    runner = CliRunner()

    result = runner.invoke(
        main, ["apply", "ncloud_server", "-c", str(cfg), "-s", str(state_path)], obj=_obj(client)
    )
    assert result.exit_code == 0, result.output
    saved = json.loads(state_path.read_text(encoding="utf-8"))
    assert saved["type"] == "ncloud_server"
    assert saved["id"] == "100"
    assert saved["attributes"]["server_instance_status"]["code"] == "RUN"

    result = runner.invoke(main, ["destroy", "ncloud_server", "-s", str(state_path)], obj=_obj(client))
    assert result.exit_code == 0, result.output
    assert not state_path.exists()
    assert "terminateServerInstances" in client.actions()


def test_import_writes_state(tmp_path) -> None:
    client = FakeNcloudClient()
    client.instances["321"] = server_instance("321")
    state_path = tmp_path / "state.json"

    result = CliRunner().invoke(
        main, ["import", "ncloud_server", "321", "-s", str(state_path)], obj=_obj(client)
    )

    assert result.exit_code == 0, result.output
    assert json.loads(state_path.read_text(encoding="utf-8"))["id"] == "321"


def test_data_prints_json(tmp_path) -> None:
    client = FakeNcloudClient()
    client.member_server_images = [{"memberServerImageNo": "1", "memberServerImageName": "web-base"}]
    cfg = tmp_path / "images.json"
    cfg.write_text(json.dumps({"member_server_image_name_regex": "web"}), encoding="utf-8")

    result = CliRunner().invoke(
        main, ["data", "ncloud_member_server_images", "-c", str(cfg)], obj=_obj(client)
    )

    assert result.exit_code == 0, result.output
    out = json.loads(result.output)
    assert out["member_server_images"][0]["member_server_image_no"] == "1"


def test_apply_failure_exits_nonzero(tmp_path) -> None:
    client = FakeNcloudClient()
    cfg = tmp_path / "server.json"
    cfg.write_text(json.dumps({"server_name": "web-1"}), encoding="utf-8")

    result = CliRunner().invoke(
        main, ["apply", "ncloud_server", "-c", str(cfg), "-s", str(tmp_path / "s.json")], obj=_obj(client)
    )

    assert result.exit_code == 1
    assert client.calls == []


def test_apply_saves_id_when_create_times_out(tmp_path) -> None:
    client = FakeNcloudClient()
    client.boot_hangs = True
    cfg = tmp_path / "server.json"
    cfg.write_text(json.dumps({"server_image_product_code": "SPSW0LINUX000032"}), encoding="utf-8")
    state_path = tmp_path / "state.json"
    provider_cfg = ProviderConfig(access_key="ak", secret_key="sk", create_timeout=0.2, default_timeout=5)
    runner = CliRunner()

    result = runner.invoke(
        main,
        ["apply", "ncloud_server", "-c", str(cfg), "-s", str(state_path)],
        obj={"provider": Provider(provider_cfg, client=client)},  # type: ignore[arg-type]
    )
    assert result.exit_code == 1
    assert json.loads(state_path.read_text(encoding="utf-8"))["id"] == "100"

    # 다음 apply 는 새 서버를 만들지 않고 기존 id 로 변경 경로를 탄다.
    client.boot_hangs = False
    result = runner.invoke(
        main, ["apply", "ncloud_server", "-c", str(cfg), "-s", str(state_path)], obj=_obj(client)
    )
    assert result.exit_code == 0, result.output
    assert client.actions().count("createServerInstances") == 1
    assert json.loads(state_path.read_text(encoding="utf-8"))["id"] == "100"
