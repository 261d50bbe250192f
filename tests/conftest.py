"""共通フィクスチャ"""

from collections.abc import Iterator

import pytest

from codeshift.backend.charset_service import initialize_environment, uninitialize_environment


@pytest.fixture
def service_environment() -> Iterator[None]:
    """現在のスレッドで変換サービスの環境トークンを取得するフィクスチャ"""
    initialize_environment()
    yield
    uninitialize_environment()
