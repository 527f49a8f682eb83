"""
plugins/cloudtrail - CloudTrail 리소스 어댑터

최근 관리 이벤트를 페이지 단위로 조회합니다.
"""

CATEGORY = {
    "name": "cloudtrail",
    "display_name": "CloudTrail",
    "description": "CloudTrail 이벤트 조회",
    "aliases": ["trail", "audit-log"],
}

RESOURCES = [
    {
        "name": "events",
        "display_name": "Events",
        "description": "최근 90일 관리 이벤트 (페이지 단위 조회, 읽기 전용)",
        "permission": "read",
        "module": "events",
    },
]
