import json
import os
import sys
from typing import Any, Dict, Optional

import click

from .config import load_env_files, ProviderConfig
from .logging_utils import setup_logging, get_logger
from .provider import PartialStateError, Provider


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). .env / .env.ncloud 를 여기서 읽습니다.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (API 요청/응답 추적 로그 포함)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """Naver Cloud Platform 서버 리소스 프로바이더 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _provider_from_ctx(ctx: click.Context) -> Provider:
    if "provider" in ctx.obj:
        return ctx.obj["provider"]
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    cfg = ProviderConfig.from_env()
    logger.debug("Config loaded: %s", cfg)
    provider = Provider(cfg)
    ctx.obj["provider"] = provider
    return provider


def _fail(message: str) -> None:
    click.echo(f"[ERROR] {message}", err=True)
    sys.exit(1)


def _read_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: JSON 객체가 아닙니다.")
    return data


def _load_state(path: str) -> Optional[Dict[str, Any]]:
    """state 파일: {"type": ..., "id": ..., "attributes": {...}}"""
    if not os.path.exists(path):
        return None
    data = _read_json(path)
    attrs = dict(data.get("attributes") or {})
    if data.get("id"):
        attrs["id"] = data["id"]
    return attrs


def _save_state(path: str, resource_type: str, state: Optional[Dict[str, Any]]) -> None:
    if state is None:
        if os.path.exists(path):
            os.remove(path)
        click.echo(f"{resource_type}: 리소스가 없어 state 파일을 제거했습니다. ({path})")
        return
    attrs = dict(state)
    resource_id = attrs.pop("id", "")
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"type": resource_type, "id": resource_id, "attributes": attrs}, f, indent=2, ensure_ascii=False)
    click.echo(f"{resource_type}: id={resource_id} state 를 저장했습니다. ({path})")


_config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, exists=True),
    required=True,
    help="리소스 설정(JSON) 파일 경로",
)
_state_option = click.option(
    "-s",
    "--state",
    "state_path",
    type=click.Path(dir_okay=False),
    default="terraform.tfstate.json",
    show_default=True,
    help="state(JSON) 파일 경로",
)


@main.command()
@click.argument("resource_type")
@_config_option
@click.pass_context
def validate(ctx: click.Context, resource_type: str, config_path: str) -> None:
    """설정 파일을 검증만 한다. (API 호출 없음)"""
    from .provider import DATA_SOURCES, RESOURCES

    try:
        config = _read_json(config_path)
        registry = RESOURCES if resource_type in RESOURCES else DATA_SOURCES
        if resource_type not in registry:
            raise KeyError(
                f"알 수 없는 타입입니다: {resource_type} "
                f"(허용: {', '.join(sorted(list(RESOURCES) + list(DATA_SOURCES)))})"
            )
        registry[resource_type].validate(config)
    except (ValueError, KeyError) as e:
        _fail(str(e))

    click.echo(f"{resource_type}: 설정이 올바릅니다.")


@main.command()
@click.argument("resource_type")
@_config_option
@_state_option
@click.pass_context
def apply(ctx: click.Context, resource_type: str, config_path: str, state_path: str) -> None:
    """state 가 없으면 생성, 있으면 변경 후 state 를 저장"""
    try:
        provider = _provider_from_ctx(ctx)
        config = _read_json(config_path)
        prior = _load_state(state_path)
        new_state = provider.apply(resource_type, config, prior)
    except PartialStateError as e:
        logger.exception("apply 중 오류 발생 (id=%s)", e.state.get("id"))
        _save_state(state_path, resource_type, e.state)
        _fail(f"apply 실패: {e}")
        return
    except Exception as e:  # noqa: BLE001
        logger.exception("apply 중 오류 발생")
        _fail(f"apply 실패: {e}")
        return

    _save_state(state_path, resource_type, new_state)


@main.command()
@click.argument("resource_type")
@_state_option
@click.pass_context
def refresh(ctx: click.Context, resource_type: str, state_path: str) -> None:
    """원격 상태를 다시 읽어 state 를 갱신"""
    try:
        provider = _provider_from_ctx(ctx)
        prior = _load_state(state_path)
        if prior is None:
            _fail(f"state 파일이 없습니다: {state_path}")
            return
        new_state = provider.refresh(resource_type, prior)
    except Exception as e:  # noqa: BLE001
        logger.exception("refresh 중 오류 발생")
        _fail(f"refresh 실패: {e}")
        return

    _save_state(state_path, resource_type, new_state)


@main.command()
@click.argument("resource_type")
@_state_option
@click.pass_context
def destroy(ctx: click.Context, resource_type: str, state_path: str) -> None:
    """state 의 리소스를 삭제하고 state 파일을 제거"""
    try:
        provider = _provider_from_ctx(ctx)
        prior = _load_state(state_path)
        if prior is None:
            click.echo(f"state 파일이 없어 삭제할 리소스가 없습니다: {state_path}")
            return
        provider.destroy(resource_type, prior)
    except Exception as e:  # noqa: BLE001
        logger.exception("destroy 중 오류 발생")
        _fail(f"destroy 실패: {e}")
        return

    _save_state(state_path, resource_type, None)


@main.command(name="import")
@click.argument("resource_type")
@click.argument("resource_id")
@_state_option
@click.pass_context
def import_(ctx: click.Context, resource_type: str, resource_id: str, state_path: str) -> None:
    """기존 리소스를 id 로 읽어 state 로 저장"""
    try:
        provider = _provider_from_ctx(ctx)
        new_state = provider.import_resource(resource_type, resource_id)
    except Exception as e:  # noqa: BLE001
        logger.exception("import 중 오류 발생")
        _fail(f"import 실패: {e}")
        return

    if new_state is None:
        _fail(f"{resource_type}: 리소스를 찾을 수 없습니다 ({resource_id})")
        return
    _save_state(state_path, resource_type, new_state)


@main.command()
@click.argument("data_source_type")
@_config_option
@click.pass_context
def data(ctx: click.Context, data_source_type: str, config_path: str) -> None:
    """data source 를 조회해 결과 속성을 JSON 으로 출력"""
    try:
        provider = _provider_from_ctx(ctx)
        config = _read_json(config_path)
        result = provider.read_data_source(data_source_type, config)
    except Exception as e:  # noqa: BLE001
        logger.exception("data source 조회 중 오류 발생")
        _fail(f"조회 실패: {e}")
        return

    click.echo(json.dumps(result, indent=2, ensure_ascii=False))
