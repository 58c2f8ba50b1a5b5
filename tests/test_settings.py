from pathlib import Path

from pdf_merge_compress.settings import Settings


def test_defaults(monkeypatch):
    for name in ("HOST", "PORT", "LOGS_DIR", "DEFAULT_TARGET_MB", "MAX_FILES", "MAX_FILE_SIZE",
                 "PROCESS_TIMEOUT", "LOG_LEVEL", "STATIC_DIR"):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()

    assert s.port == 3000
    assert s.default_target_mb == 9.0
    assert s.max_files == 20
    assert s.max_file_size == 100 * 1024 * 1024
    assert s.process_timeout == 0.0
    assert s.logs_dir == Path("logs")
    assert s.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("DEFAULT_TARGET_MB", "2.5")
    monkeypatch.setenv("MAX_FILES", "3")
    monkeypatch.setenv("PROCESS_TIMEOUT", "30")

    s = Settings.from_env()

    assert s.port == 8080
    assert s.default_target_mb == 2.5
    assert s.max_files == 3
    assert s.process_timeout == 30.0


def test_garbage_values_fall_back(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    monkeypatch.setenv("DEFAULT_TARGET_MB", "-4")
    monkeypatch.setenv("PROCESS_TIMEOUT", "soon")

    s = Settings.from_env()

    assert s.port == 3000
    assert s.default_target_mb == 9.0
    assert s.process_timeout == 0.0


def test_empty_logs_dir_means_console_only(monkeypatch):
    monkeypatch.setenv("LOGS_DIR", "")
    assert Settings.from_env().logs_dir is None
