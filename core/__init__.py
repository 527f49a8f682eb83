# core/__init__.py
"""
core - AWS 리소스 브라우저 코어

어댑터(플러그인)와 호스트(CLI) 사이의 계약을 정의하는 최상위 패키지입니다.
리소스 모델, DAO 계약, 플러그인 레지스트리, 액션 프레임워크, 예외 계층을 통합합니다.

아키텍처:
    core/
    ├── dao/            # 리소스 모델, 리전 데코레이터, DAO/페이지네이션 계약
    ├── registry/       # (service, kind) → 팩토리 레지스트리, 리전 DAO 래퍼, 렌더러 계약
    ├── action/         # 액션 선언, 확인 정책, 실행기
    ├── context.py      # 요청 컨텍스트 (필터, 리전/프로파일 오버라이드, 취소)
    ├── aws.py          # boto3 세션/클라이언트 헬퍼
    ├── plugins.py      # 플러그인 발견 및 부트스트랩
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 부트스트랩
    from core.plugins import bootstrap
    registry, actions = bootstrap()

    # 조회
    from core.context import background, with_filter
    ctx = with_filter(background(), "VpcId", "vpc-0abc")
    dao = registry.new_dao(ctx, "ec2", "instances")
    resources = dao.list(ctx)

    # 예외 처리
    from core.exceptions import NotFoundError
    try:
        dao.get(ctx, "i-missing")
    except NotFoundError:
        print("없습니다")
"""

from core import action, aws, config, context, dao, exceptions, plugins, registry

__all__: list[str] = [
    # 서브패키지
    "action",
    "dao",
    "registry",
    # 모듈
    "aws",
    "config",
    "context",
    "exceptions",
    "plugins",
]
