"""
tests/cli/test_cli_app.py - cli/app.py 테스트

레지스트리를 주입한 Browser로 CLI 명령을 실행합니다.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cli.app import cli
from cli.host import Browser
from core.action import Action, ActionRegistry, ActionResult, ConfirmLevel
from core.config import get_settings
from core.dao import BaseResource
from core.registry import Column, Entry, Registry, Renderer


class ItemRenderer(Renderer):
    def columns(self):
        return [Column("ID", lambda r: r.get_id()), Column("NAME", lambda r: r.get_name())]


@pytest.fixture
def runner():
    """Click CliRunner"""
    return CliRunner()


@pytest.fixture
def dao(make_dao):
    return make_dao([BaseResource(id="i-1", name="web"), BaseResource(id="i-2", name="db")])


@pytest.fixture
def executor():
    return MagicMock(side_effect=lambda ctx, action, resource: ActionResult.ok(f"{action.name} {resource.get_id()}"))


@pytest.fixture
def obj(dao, executor):
    """CLI에 주입할 obj (프로세스 설정 싱글톤 공유)"""
    registry = Registry()
    registry.register_custom("test", "items", Entry(dao_factory=lambda ctx: dao, renderer_factory=ItemRenderer))

    actions = ActionRegistry()
    actions.register(
        "test",
        "items",
        [
            Action(name="Ping", shortcut="P", operation="Ping"),
            Action(name="Stop", shortcut="S", operation="Stop", confirm=ConfirmLevel.SIMPLE),
            Action(name="Destroy", shortcut="D", operation="Destroy", confirm=ConfirmLevel.DANGEROUS),
        ],
    )
    actions.register_executor("test", "items", executor)

    registry.freeze()
    actions.freeze()
    return {"browser": Browser(registry, actions, get_settings())}


class TestGroup:
    """CLI 그룹 테스트"""

    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_without_command(self, runner, obj):
        result = runner.invoke(cli, [], obj=obj)
        assert result.exit_code == 0
        assert "AWS Resource Browser" in result.output

    def test_profile_and_env_conflict(self, runner, obj):
        result = runner.invoke(cli, ["-p", "dev", "-e", "resources"], obj=obj)
        assert result.exit_code == 2

    def test_invalid_region(self, runner, obj):
        result = runner.invoke(cli, ["-r", "nowhere", "resources"], obj=obj)
        assert result.exit_code == 1
        assert "region" in result.output

    def test_config_file(self, runner, obj, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("read_only: true\n", encoding="utf-8")

        runner.invoke(cli, ["-c", str(config), "resources"], obj=obj)

        assert get_settings().read_only


class TestStatusCommand:
    """status 명령 테스트"""

    @pytest.fixture
    def sts(self):
        with patch("cli.host.get_client") as mock_get_client:
            mock_get_client.return_value.get_caller_identity.return_value = {
                "Account": "111122223333",
                "Arn": "arn:aws:iam::111122223333:user/alice",
                "UserId": "AIDAEXAMPLE",
            }
            yield mock_get_client.return_value

    def test_status(self, runner, obj, sts):
        result = runner.invoke(cli, ["status"], obj=obj)

        assert result.exit_code == 0
        assert "111122223333" in result.output
        assert "SDK Default" in result.output

    def test_demo_masks_account(self, runner, obj, sts):
        result = runner.invoke(cli, ["--demo", "status"], obj=obj)

        assert result.exit_code == 0
        assert "111122223333" not in result.output
        assert "123456789012" in result.output
        assert get_settings().demo_mode

    def test_json(self, runner, obj, sts):
        result = runner.invoke(cli, ["--demo", "-e", "status", "--json"], obj=obj)

        data = json.loads(result.output)
        assert data["account_id"] == "123456789012"
        assert data["caller_arn"] == "arn:aws:iam::123456789012:user/alice"
        assert data["selection"] == "__env_only__"
        assert data["warnings"] == []

    def test_identity_failure_shows_warning(self, runner, obj, sts, client_error):
        sts.get_caller_identity.side_effect = client_error("ExpiredToken")

        result = runner.invoke(cli, ["status"], obj=obj)

        assert result.exit_code == 0
        assert "호출자 확인 실패" in result.output

    def test_config_warnings(self, runner, obj, sts, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("colour: blue\n", encoding="utf-8")

        result = runner.invoke(cli, ["-c", str(config), "status", "--json"], obj=obj)

        assert json.loads(result.output)["warnings"] == ["알 수 없는 설정 키: colour"]


class TestResourcesCommand:
    """resources 명령 테스트"""

    def test_lists_registered_kinds(self, runner, obj):
        result = runner.invoke(cli, ["resources"], obj=obj)
        assert result.exit_code == 0
        assert "test" in result.output
        assert "items" in result.output
        assert "Ping" in result.output


class TestListCommand:
    """list 명령 테스트"""

    def test_list(self, runner, obj):
        result = runner.invoke(cli, ["list", "test", "items"], obj=obj)

        assert result.exit_code == 0
        assert "i-1" in result.output
        assert "db" in result.output
        assert "2개" in result.output

    def test_filter_passed_to_context(self, runner, obj, dao):
        result = runner.invoke(cli, ["list", "test", "items", "-f", "VpcId=vpc-1"], obj=obj)

        assert result.exit_code == 0
        _, seen_ctx = dao.calls[0]
        assert seen_ctx.filters["VpcId"] == "vpc-1"

    def test_bad_filter(self, runner, obj):
        result = runner.invoke(cli, ["list", "test", "items", "-f", "novalue"], obj=obj)
        assert result.exit_code == 2

    def test_unregistered_kind(self, runner, obj):
        result = runner.invoke(cli, ["list", "nope", "nothing"], obj=obj)
        assert result.exit_code == 1

    def test_multi_region_column(self, runner, obj):
        result = runner.invoke(cli, ["-r", "us-east-1", "-r", "eu-west-1", "list", "test", "items"], obj=obj)

        assert result.exit_code == 0
        assert "REGION" in result.output
        assert "eu-west-1" in result.output
        assert "4개" in result.output


class TestGetCommand:
    """get 명령 테스트"""

    def test_get(self, runner, obj):
        result = runner.invoke(cli, ["get", "test", "items", "i-1"], obj=obj)
        assert result.exit_code == 0
        assert "ID:   i-1" in result.output

    def test_get_missing(self, runner, obj):
        result = runner.invoke(cli, ["get", "test", "items", "i-404"], obj=obj)
        assert result.exit_code == 1

    def test_get_multiple_regions_rejected(self, runner, obj):
        result = runner.invoke(cli, ["-r", "us-east-1", "-r", "eu-west-1", "get", "test", "items", "i-1"], obj=obj)
        assert result.exit_code == 2


class TestDeleteCommand:
    """delete 명령 테스트"""

    def test_delete_yes(self, runner, obj, dao):
        result = runner.invoke(cli, ["delete", "test", "items", "i-1", "-y"], obj=obj)

        assert result.exit_code == 0
        assert "삭제됨" in result.output
        assert dao.deleted == ["i-1"]

    @patch("cli.app.questionary.confirm")
    def test_delete_declined(self, mock_confirm, runner, obj, dao):
        mock_confirm.return_value.ask.return_value = False

        result = runner.invoke(cli, ["delete", "test", "items", "i-1"], obj=obj)

        assert result.exit_code == 0
        assert "취소" in result.output
        assert dao.deleted == []

    def test_delete_read_only(self, runner, obj, dao):
        result = runner.invoke(cli, ["--read-only", "delete", "test", "items", "i-1", "-y"], obj=obj)

        assert result.exit_code == 1
        assert dao.deleted == []


class TestActionsCommand:
    """actions 명령 테스트"""

    def test_actions(self, runner, obj):
        result = runner.invoke(cli, ["actions", "test", "items"], obj=obj)
        assert result.exit_code == 0
        assert "Destroy" in result.output
        assert "dangerous" in result.output

    def test_no_actions(self, runner, obj):
        result = runner.invoke(cli, ["actions", "other", "things"], obj=obj)
        assert result.exit_code == 0
        assert "등록된 액션이 없습니다" in result.output


class TestRunCommand:
    """run 명령 테스트"""

    def test_no_confirm_action(self, runner, obj, executor):
        result = runner.invoke(cli, ["run", "test", "items", "i-1", "Ping"], obj=obj)

        assert result.exit_code == 0
        assert "Ping i-1" in result.output
        executor.assert_called_once()

    def test_simple_with_yes_by_shortcut(self, runner, obj, executor):
        result = runner.invoke(cli, ["run", "test", "items", "i-1", "S", "-y"], obj=obj)

        assert result.exit_code == 0
        assert "Stop i-1" in result.output

    @patch("cli.app.questionary.confirm")
    def test_simple_declined(self, mock_confirm, runner, obj, executor):
        mock_confirm.return_value.ask.return_value = False

        result = runner.invoke(cli, ["run", "test", "items", "i-1", "Stop"], obj=obj)

        assert result.exit_code == 0
        assert "취소" in result.output
        executor.assert_not_called()

    @patch("cli.app.questionary.text")
    def test_dangerous_wrong_phrase(self, mock_text, runner, obj, executor):
        """-y가 있어도 위험 작업은 이름 재입력 필요"""
        mock_text.return_value.ask.return_value = "wrong"

        result = runner.invoke(cli, ["run", "test", "items", "i-1", "Destroy", "-y"], obj=obj)

        assert result.exit_code == 0
        assert "취소" in result.output
        executor.assert_not_called()

    @patch("cli.app.questionary.text")
    def test_dangerous_correct_phrase(self, mock_text, runner, obj, executor):
        mock_text.return_value.ask.return_value = "web"

        result = runner.invoke(cli, ["run", "test", "items", "i-1", "Destroy"], obj=obj)

        assert result.exit_code == 0
        assert "Destroy i-1" in result.output

    @patch("cli.app.questionary.select")
    def test_select_action(self, mock_select, runner, obj, executor):
        mock_select.return_value.ask.return_value = obj["browser"].find_action("test", "items", "Ping")

        result = runner.invoke(cli, ["run", "test", "items", "i-2"], obj=obj)

        assert result.exit_code == 0
        assert "Ping i-2" in result.output

    def test_unknown_action(self, runner, obj):
        result = runner.invoke(cli, ["run", "test", "items", "i-1", "Fly"], obj=obj)
        assert result.exit_code == 1

    def test_executor_failure(self, runner, obj, executor):
        executor.side_effect = lambda ctx, action, resource: ActionResult.unknown_operation(action.operation)

        result = runner.invoke(cli, ["run", "test", "items", "i-1", "Ping"], obj=obj)

        assert result.exit_code == 1
        assert "unknown operation" in result.output

    def test_read_only_blocks_action(self, runner, obj, executor):
        result = runner.invoke(cli, ["--read-only", "run", "test", "items", "i-1", "Ping"], obj=obj)

        assert result.exit_code == 1
        executor.assert_not_called()
