"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 리소스 브라우저 CLI입니다.
시작 시 플러그인을 한 번 로드하여 레지스트리를 고정한 뒤 명령을 실행합니다.

명령어 구조:
    ab --version                                # 버전 표시
    ab status                                   # 자격 증명과 계정 상태
    ab resources                                # 등록된 (service, kind) 목록
    ab list <service> <kind>                    # 리소스 목록
    ab list ec2 instances --filter VpcId=vpc-1  # 필터 적용
    ab get <service> <kind> <id>                # 상세 보기
    ab delete <service> <kind> <id>             # 삭제 (확인 후)
    ab actions <service> <kind>                 # 액션 목록
    ab run <service> <kind> <id> [action]       # 액션 실행 (확인 정책 적용)

공통 옵션:
    -p/--profile, -r/--region (다중 가능), -e/--env, --read-only, -l/--log-file, -c/--config, --demo

Usage:
    $ ab list ec2 instances -r ap-northeast-2 -r us-east-1
    $ ab run ec2 instances i-0abc Stop

    # 모듈로 실행
    $ python -m cli.app
"""

import json
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가 (plugins 모듈 임포트를 위함)
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import click  # noqa: E402
import questionary  # noqa: E402
from click import Context  # noqa: E402
from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402

from cli.host import Browser  # noqa: E402
from core.action import ActionType, ConfirmLevel, InvocationState  # noqa: E402
from core.config import Settings, get_version, load_settings  # noqa: E402
from core.context import (  # noqa: E402
    RequestContext,
    background,
    with_filter,
    with_profile_override,
    with_region_override,
)
from core.dao import get_resource_region  # noqa: E402
from core.exceptions import BrowserError, format_error_for_user  # noqa: E402
from core.plugins import bootstrap  # noqa: E402

# Keep lightweight, centralized logging config
# WARNING 레벨로 설정하여 INFO 로그가 목록 출력에 섞이지 않도록 함
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

console = Console()

VERSION = get_version()


def _setup_log_file(path: str) -> None:
    """DEBUG 레벨 파일 로그 추가 (콘솔 출력은 WARNING 유지)"""
    root = logging.getLogger()
    for handler in root.handlers:
        if handler.level == logging.NOTSET:
            handler.setLevel(logging.WARNING)

    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(file_handler)
    root.setLevel(logging.DEBUG)
    logger.debug(f"로그 파일: {path}")


def _parse_filters(filters: tuple[str, ...]) -> list[tuple[str, str]]:
    """KEY=VALUE 형식 파싱"""
    parsed = []
    for item in filters:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"KEY=VALUE 형식이어야 합니다: {item}", param_hint="--filter")
        parsed.append((key.strip(), value.strip()))
    return parsed


def _get_browser(ctx: Context) -> Browser:
    """레지스트리를 한 번만 로드하여 재사용"""
    obj = ctx.ensure_object(dict)
    if "browser" not in obj:
        registry, actions = bootstrap()
        obj["browser"] = Browser(registry, actions, obj.get("settings"))
    return obj["browser"]


def _request_context(ctx: Context) -> RequestContext:
    obj = ctx.ensure_object(dict)
    request = background()
    if obj.get("profile"):
        request = with_profile_override(request, obj["profile"])
    return request


def _regions(ctx: Context) -> list[str] | None:
    regions = ctx.ensure_object(dict).get("regions") or ()
    return list(regions) or None


def _single_region(ctx: Context) -> str:
    regions = _regions(ctx) or []
    if len(regions) > 1:
        raise click.UsageError("이 명령은 리전을 하나만 지정할 수 있습니다")
    return regions[0] if regions else ""


def _mask_arn(arn: str, settings: Settings) -> str:
    """ARN의 계정 필드 마스킹 (데모 모드가 아니면 그대로)"""
    parts = arn.split(":", 5)
    if len(parts) == 6 and parts[4]:
        parts[4] = settings.mask_account_id(parts[4])
    return ":".join(parts)


def _fail(error: Exception) -> None:
    console.print(format_error_for_user(error), style="red", markup=False)
    raise SystemExit(1)


@click.group(invoke_without_command=True)
@click.version_option(VERSION, prog_name="ab")
@click.option("-p", "--profile", default=None, help="AWS 프로파일")
@click.option("-r", "--region", "regions", multiple=True, help="리전 (다중 가능)")
@click.option("-e", "--env", "env_only", is_flag=True, help="환경 변수 자격 증명만 사용 (~/.aws 무시)")
@click.option("--read-only", is_flag=True, help="읽기 전용 모드 (변경 액션 차단)")
@click.option("-l", "--log-file", default=None, help="디버그 로그 파일 경로")
@click.option("-c", "--config", "config_path", default=None, help="설정 파일 경로")
@click.option("--demo", is_flag=True, help="데모 모드 (계정 ID 마스킹)")
@click.pass_context
def cli(
    ctx: Context,
    profile: str | None,
    regions: tuple[str, ...],
    env_only: bool,
    read_only: bool,
    log_file: str | None,
    config_path: str | None,
    demo: bool,
) -> None:
    """AB - AWS Resource Browser CLI"""
    obj = ctx.ensure_object(dict)

    try:
        settings: Settings = load_settings(config_path)
        if profile and env_only:
            raise click.UsageError("--profile과 --env는 함께 사용할 수 없습니다")
        if profile:
            settings.use_profile(profile)
        elif env_only:
            settings.use_env_only()
        if read_only:
            settings.set_read_only(True)
        if demo:
            settings.set_demo_mode(True)
        if len(regions) == 1:
            settings.set_region(regions[0])
        if log_file:
            settings.set_log_file(log_file)
    except BrowserError as e:
        _fail(e)

    if settings.log_file:
        _setup_log_file(settings.log_file)

    obj["settings"] = settings
    obj["regions"] = regions
    obj["profile"] = profile

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("status")
@click.option("--json", "as_json", is_flag=True, help="JSON으로 출력")
@click.pass_context
def status_command(ctx: Context, as_json: bool) -> None:
    """현재 자격 증명과 계정 상태

    STS로 호출자를 확인합니다. 데모 모드에서는 계정 ID를 마스킹합니다.
    """
    browser = _get_browser(ctx)
    settings: Settings = ctx.obj["settings"]

    request = _request_context(ctx)
    region = _single_region(ctx)
    if region:
        request = with_region_override(request, region)

    try:
        identity = browser.identify(request)
    except BrowserError as e:
        _fail(e)

    caller_arn = _mask_arn(identity.arn, settings) if identity else ""

    if as_json:
        data = settings.to_dict()
        data["caller_arn"] = caller_arn
        data["warnings"] = settings.warnings
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    table = Table(title="Status", show_header=False)
    table.add_column("KEY", style="cyan")
    table.add_column("VALUE", style="white")
    table.add_row("Profile", ctx.obj.get("profile") or settings.selection.display_name())
    table.add_row("Region", settings.region or "-")
    table.add_row("Account", settings.account_id or "-")
    table.add_row("Caller", caller_arn or "-")
    table.add_row("Read-only", "yes" if settings.read_only else "no")
    table.add_row("Demo", "yes" if settings.demo_mode else "no")
    console.print(table)

    for warning in settings.warnings:
        console.print(f"! {warning}", style="yellow", markup=False)


@cli.command("resources")
@click.pass_context
def resources_command(ctx: Context) -> None:
    """등록된 리소스 종류 목록"""
    browser = _get_browser(ctx)

    table = Table(title="Resource Types", show_header=True)
    table.add_column("SERVICE", style="cyan")
    table.add_column("KIND", style="white")
    table.add_column("ACTIONS", style="yellow")

    for service, resource_type in browser.registry.keys():
        names = ", ".join(a.name for a in browser.actions_for(service, resource_type))
        table.add_row(service, resource_type, names)

    console.print(table)


@cli.command("list")
@click.argument("service")
@click.argument("kind")
@click.option("-f", "--filter", "filters", multiple=True, help="필터 KEY=VALUE (다중 가능)")
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="페이지 크기 (페이지네이션 지원 리소스)")
@click.pass_context
def list_command(ctx: Context, service: str, kind: str, filters: tuple[str, ...], page_size: int | None) -> None:
    """리소스 목록

    \b
    Examples:
        ab list ec2 instances
        ab list ec2 instances --filter VpcId=vpc-0abc
        ab list apigateway stages -f RestApiId=a1b2c3
        ab list cloudtrail events --page-size 50
    """
    browser = _get_browser(ctx)
    request = _request_context(ctx)
    for key, value in _parse_filters(filters):
        request = with_filter(request, key, value)

    try:
        renderer = browser.renderer(service, kind)
        result = browser.list_resources(request, service, kind, _regions(ctx), page_size)
    except BrowserError as e:
        _fail(e)

    columns = renderer.columns()
    multi_region = len(_regions(ctx) or []) > 1

    table = Table(title=f"{service}/{kind}", show_header=True)
    if multi_region:
        table.add_column("REGION", style="magenta")
    for column in columns:
        table.add_column(column.name, min_width=column.width or None)

    for resource in result.resources:
        row = renderer.render_row(resource)
        if multi_region:
            row = [get_resource_region(resource), *row]
        table.add_row(*row)

    console.print(table)
    console.print(f"[dim]{len(result)}개[/dim]")

    for region_error in result.errors:
        console.print(f"{region_error.region}: {format_error_for_user(region_error.error)}", style="yellow", markup=False)


@cli.command("get")
@click.argument("service")
@click.argument("kind")
@click.argument("resource_id")
@click.pass_context
def get_command(ctx: Context, service: str, kind: str, resource_id: str) -> None:
    """리소스 상세"""
    browser = _get_browser(ctx)
    try:
        resource = browser.get_resource(_request_context(ctx), service, kind, resource_id, _single_region(ctx))
        detail = browser.renderer(service, kind).render_detail(resource)
    except BrowserError as e:
        _fail(e)

    console.print(detail)


@cli.command("delete")
@click.argument("service")
@click.argument("kind")
@click.argument("resource_id")
@click.option("-y", "--yes", is_flag=True, help="확인 없이 삭제")
@click.pass_context
def delete_command(ctx: Context, service: str, kind: str, resource_id: str, yes: bool) -> None:
    """리소스 삭제"""
    browser = _get_browser(ctx)
    settings: Settings = ctx.obj["settings"]

    if settings.read_only:
        console.print("[red]읽기 전용 모드에서는 삭제할 수 없습니다[/red]")
        raise SystemExit(1)

    if not yes:
        confirmed = questionary.confirm(f"{service}/{kind} {resource_id} 을(를) 삭제하시겠습니까?", default=False).ask()
        if not confirmed:
            console.print("[dim]취소되었습니다[/dim]")
            return

    try:
        deleted = browser.delete_resource(_request_context(ctx), service, kind, resource_id, _single_region(ctx))
    except BrowserError as e:
        _fail(e)

    if not deleted:
        console.print(f"[yellow]{service}/{kind}은(는) 삭제를 지원하지 않습니다[/yellow]")
        raise SystemExit(1)
    console.print(f"[green]* 삭제됨: {resource_id}[/green]")


@cli.command("actions")
@click.argument("service")
@click.argument("kind")
@click.pass_context
def actions_command(ctx: Context, service: str, kind: str) -> None:
    """리소스 종류별 액션 목록"""
    browser = _get_browser(ctx)
    actions = browser.actions_for(service, kind)
    if not actions:
        console.print(f"[dim]{service}/{kind}: 등록된 액션이 없습니다[/dim]")
        return

    table = Table(title=f"{service}/{kind} actions", show_header=True)
    table.add_column("KEY", style="cyan")
    table.add_column("NAME", style="white")
    table.add_column("TYPE")
    table.add_column("CONFIRM", style="yellow")

    for action in actions:
        table.add_row(action.shortcut, action.name, action.type.value, action.confirm.value)

    console.print(table)


@cli.command("run")
@click.argument("service")
@click.argument("kind")
@click.argument("resource_id")
@click.argument("action_name", required=False)
@click.option("-y", "--yes", is_flag=True, help="SIMPLE 확인 생략 (DANGEROUS는 항상 확인)")
@click.pass_context
def run_command(ctx: Context, service: str, kind: str, resource_id: str, action_name: str | None, yes: bool) -> None:
    """리소스에 액션 실행

    \b
    Examples:
        ab run ec2 instances i-0abc Stop
        ab run ec2 instances i-0abc S      # 단축키
        ab run ec2 instances i-0abc        # 목록에서 선택
    """
    browser = _get_browser(ctx)
    request = _request_context(ctx)
    region = _single_region(ctx)

    try:
        resource = browser.get_resource(request, service, kind, resource_id, region)
    except BrowserError as e:
        _fail(e)

    available = browser.actions_for(service, kind, resource)
    if action_name:
        action = browser.find_action(service, kind, action_name)
        if action is None or action not in available:
            console.print(f"[red]액션을 찾을 수 없습니다: {action_name}[/red]")
            raise SystemExit(1)
    else:
        if not available:
            console.print(f"[dim]{service}/{kind}: 실행할 수 있는 액션이 없습니다[/dim]")
            return
        action = questionary.select(
            "실행할 액션을 선택하세요:",
            choices=[questionary.Choice(f"[{a.shortcut}] {a.name}", value=a) for a in available],
        ).ask()
        if action is None:
            console.print("[dim]취소되었습니다[/dim]")
            return

    invocation = browser.start_action(action, resource, service, kind)

    if invocation.state is InvocationState.AWAITING_CONFIRMATION:
        if action.confirm == ConfirmLevel.DANGEROUS:
            phrase = invocation.confirmation_phrase()
            answer = questionary.text(f"위험 작업입니다. 계속하려면 '{phrase}'을(를) 입력하세요:").ask()
            if answer is None or not invocation.confirm(answer):
                invocation.cancel()
        elif yes:
            invocation.confirm()
        else:
            answer = questionary.confirm(f"{action.name} {resource_id}?", default=False).ask()
            if answer:
                invocation.confirm()
            else:
                invocation.cancel()

    if invocation.state is InvocationState.CANCELLED:
        console.print("[dim]취소되었습니다[/dim]")
        return

    result = browser.dispatch(request, invocation)
    if not result.success:
        console.print(result.display, style="red", markup=False)
        raise SystemExit(1)

    if action.type == ActionType.VIEW:
        console.print(f"[cyan]{result.follow_up}[/cyan]")
    else:
        console.print(f"* {result.display}", style="green", markup=False)


if __name__ == "__main__":
    cli()
