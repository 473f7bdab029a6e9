"""
ncloud_provider
---------------

Naver Cloud Platform(ncloud) 서버 리소스 프로바이더 패키지.
서버 인스턴스(ncloud_server)와 회원 서버 이미지(ncloud_member_server_images)를
선언형 속성 맵으로 생성/조회/변경/삭제한다.
"""

__all__ = [
    "config",
    "provider",
]
