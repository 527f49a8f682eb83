"""
tests/plugins/test_plugins_apigateway_stages.py - plugins/apigateway/stages.py 테스트
"""

from unittest.mock import MagicMock

import pytest

from core.action import ActionRegistry
from core.context import with_filter
from core.exceptions import NotFoundError, ResourceInUseError, UpstreamError
from core.registry import Registry
from plugins.apigateway.stages import StageDAO, StageRenderer, StageResource, register, split_stage_id


@pytest.fixture
def apigw_client():
    """API Gateway 클라이언트 모킹 (API 2개, 각 스테이지 1~2개)"""
    client = MagicMock()
    client.meta.region_name = "us-east-1"

    paginator = MagicMock()
    paginator.paginate.return_value = [
        {"items": [{"id": "api1", "name": "orders"}]},
        {"items": [{"id": "api2", "name": "users"}]},
    ]
    client.get_paginator.return_value = paginator

    stages = {
        "api1": [
            {"stageName": "prod", "deploymentId": "d1", "tags": {"team": "a"}},
            {"stageName": "dev", "deploymentId": "d2"},
        ],
        "api2": [{"stageName": "prod", "deploymentId": "d3"}],
    }
    client.get_stages.side_effect = lambda restApiId: {"item": stages[restApiId]}
    return client


class TestSplitStageId:
    """스테이지 ID 파싱"""

    def test_valid(self):
        assert split_stage_id("abc123/prod") == ("abc123", "prod")

    @pytest.mark.parametrize("value", ["", "abc123", "abc123/", "/prod"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            split_stage_id(value)


class TestStageResource:
    """StageResource 변환"""

    def test_from_aws(self):
        resource = StageResource.from_aws({"stageName": "prod", "tags": {"k": "v"}}, "api1", "orders", "us-east-1")

        assert resource.get_id() == "api1/prod"
        assert resource.get_name() == "prod"
        assert resource.get_arn() == "arn:aws:apigateway:us-east-1::/restapis/api1/stages/prod"
        assert resource.get_tags() == {"k": "v"}
        assert resource.rest_api_name == "orders"

    def test_without_region_has_no_arn(self):
        assert StageResource.from_aws({"stageName": "prod"}, "api1").get_arn() == ""


class TestStageDAO:
    """스테이지 DAO 테스트"""

    def test_list_all_apis(self, ctx, apigw_client):
        resources = StageDAO(ctx, client=apigw_client).list(ctx)

        assert [r.get_id() for r in resources] == ["api1/prod", "api1/dev", "api2/prod"]
        assert resources[0].get_tags() == {"team": "a"}
        apigw_client.get_paginator.assert_called_once_with("get_rest_apis")

    def test_list_with_filter(self, ctx, apigw_client):
        """RestApiId 필터가 있으면 해당 API만 조회"""
        filtered = with_filter(ctx, "RestApiId", "api2")

        resources = StageDAO(ctx, client=apigw_client).list(filtered)

        assert [r.get_id() for r in resources] == ["api2/prod"]
        apigw_client.get_paginator.assert_not_called()
        apigw_client.get_stages.assert_called_once_with(restApiId="api2")

    def test_list_filter_missing_api(self, ctx, apigw_client, client_error):
        """없는 API로 필터링하면 전체 조회 후 필터링한 결과와 같은 빈 목록"""
        apigw_client.get_stages.side_effect = client_error("NotFoundException", "Invalid API identifier specified")
        dao = StageDAO(ctx, client=apigw_client)

        assert dao.list(with_filter(ctx, "RestApiId", "gone")) == []

    @pytest.mark.parametrize("api_id", ["api1", "api2", "gone"])
    def test_filtered_matches_unfiltered(self, ctx, apigw_client, client_error, api_id):
        """필터 최적화 결과 == 전체 조회 후 필터링 결과"""
        stages = apigw_client.get_stages.side_effect

        def get_stages(restApiId):
            if restApiId == "gone":
                raise client_error("NotFoundException", "Invalid API identifier specified")
            return stages(restApiId)

        apigw_client.get_stages.side_effect = get_stages
        dao = StageDAO(ctx, client=apigw_client)

        expected = [r.get_id() for r in dao.list(ctx) if r.rest_api_id == api_id]
        optimized = [r.get_id() for r in dao.list(with_filter(ctx, "RestApiId", api_id))]

        assert optimized == expected

    def test_api_deleted_during_listing(self, ctx, apigw_client, client_error):
        """목록 조회 중 삭제된 API는 건너뜀"""
        stages = apigw_client.get_stages.side_effect

        def get_stages(restApiId):
            if restApiId == "api1":
                raise client_error("NotFoundException", "Invalid API identifier specified")
            return stages(restApiId)

        apigw_client.get_stages.side_effect = get_stages

        resources = StageDAO(ctx, client=apigw_client).list(ctx)

        assert [r.get_id() for r in resources] == ["api2/prod"]

    def test_list_stages_other_errors_propagate(self, ctx, apigw_client, client_error):
        apigw_client.get_stages.side_effect = client_error("TooManyRequestsException")
        with pytest.raises(UpstreamError):
            StageDAO(ctx, client=apigw_client).list(with_filter(ctx, "RestApiId", "api1"))

    def test_get(self, ctx, apigw_client):
        apigw_client.get_stage.return_value = {"stageName": "prod", "deploymentId": "d1"}

        resource = StageDAO(ctx, client=apigw_client).get(ctx, "api1/prod")

        assert resource.get_id() == "api1/prod"
        apigw_client.get_stage.assert_called_once_with(restApiId="api1", stageName="prod")

    def test_get_not_found(self, ctx, apigw_client, client_error):
        apigw_client.get_stage.side_effect = client_error("NotFoundException")
        with pytest.raises(NotFoundError):
            StageDAO(ctx, client=apigw_client).get(ctx, "api1/gone")

    def test_get_malformed_id(self, ctx, apigw_client):
        with pytest.raises(ValueError):
            StageDAO(ctx, client=apigw_client).get(ctx, "no-slash")

    def test_delete(self, ctx, apigw_client):
        StageDAO(ctx, client=apigw_client).delete(ctx, "api1/dev")
        apigw_client.delete_stage.assert_called_once_with(restApiId="api1", stageName="dev")

    def test_delete_not_found_is_noop(self, ctx, apigw_client, client_error):
        apigw_client.delete_stage.side_effect = client_error("NotFoundException")
        StageDAO(ctx, client=apigw_client).delete(ctx, "api1/gone")

    def test_delete_conflict_is_in_use(self, ctx, apigw_client, client_error):
        apigw_client.delete_stage.side_effect = client_error("ConflictException", "stage is used by usage plan")

        with pytest.raises(ResourceInUseError) as exc_info:
            StageDAO(ctx, client=apigw_client).delete(ctx, "api1/prod")
        assert exc_info.value.target == "api1/prod"

    def test_delete_other_error(self, ctx, apigw_client, client_error):
        apigw_client.delete_stage.side_effect = client_error("TooManyRequestsException")
        with pytest.raises(UpstreamError):
            StageDAO(ctx, client=apigw_client).delete(ctx, "api1/prod")


class TestRegister:
    """register() 테스트"""

    def test_register_without_actions(self):
        registry, actions = Registry(), ActionRegistry()
        register(registry, actions)

        assert isinstance(registry.new_renderer("apigateway", "stages"), StageRenderer)
        assert actions.get("apigateway", "stages") == ()
