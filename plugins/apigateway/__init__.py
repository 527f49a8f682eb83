"""
plugins/apigateway - API Gateway 리소스 어댑터

REST API 스테이지 조회/삭제를 제공합니다.
"""

CATEGORY = {
    "name": "apigateway",
    "display_name": "API Gateway",
    "description": "API Gateway 관리",
    "description_en": "API Gateway Management",
    "aliases": ["api", "gateway", "apigw"],
}

RESOURCES = [
    {
        "name": "stages",
        "display_name": "Stages",
        "description": "REST API 스테이지 (RestApiId 필터 지원)",
        "description_en": "REST API stages (supports RestApiId filter)",
        "permission": "write",
        "module": "stages",
    },
]
