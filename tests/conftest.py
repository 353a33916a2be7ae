"""
共通フィクスチャと収集設定。

- テスト向けの環境変数を毎テスト自動設定（autouse）
- 設定キャッシュを毎テストでクリア
- ルートを `sys.path` に追加して `import lunary.*` を解決
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# プロジェクトルート（このファイルの親の親）をパスに追加
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """テスト用の環境変数を毎テストで設定。

    設定ファイルとログは一時ディレクトリに向け、実ユーザーの
    設定ディレクトリには触れません。
    """
    from lunary.config import clear_settings_cache

    env: dict[str, str] = {
        "LUNARY_ENVIRONMENT": "testing",
        "LUNARY_CONFIG_DIR": str(tmp_path / "config"),
        "LUNARY_DATA_DIR": str(tmp_path / "data"),
        "LUNARY_LOG_DIR": str(tmp_path / "logs"),
        "LUNARY_ENABLE_FILE_LOGGING": "false",
        "LUNARY_SEARCH_DEBOUNCE_MS": "300",
    }

    for k, v in env.items():
        monkeypatch.setenv(k, v)

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "config"
