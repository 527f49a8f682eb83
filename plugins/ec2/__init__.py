"""
plugins/ec2 - EC2 리소스 어댑터

EC2 인스턴스 조회/삭제(종료)와 시작/중지/재부팅 액션을 제공합니다.
"""

CATEGORY = {
    "name": "ec2",
    "display_name": "EC2",
    "description": "EC2 및 컴퓨팅 리소스 관리",
    "description_en": "EC2 and Compute Resource Management",
    "aliases": ["compute"],
}

RESOURCES = [
    {
        "name": "instances",
        "display_name": "Instances",
        "description": "EC2 인스턴스 목록, 상세, 시작/중지/종료",
        "description_en": "List, inspect, start/stop/terminate EC2 instances",
        "permission": "write",
        "module": "instances",
    },
]
