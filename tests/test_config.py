import logging

import pytest

from responsive_grid.config import ConfigManager
from responsive_grid.logging_config import setup_logging


class TestConfigManager:
    def test_singleton(self):
        assert ConfigManager() is ConfigManager()

    def test_packaged_grid_defaults(self):
        grid_config = ConfigManager().get_grid_config()

        assert grid_config["empty_cell_text"] == "Content goes here."
        assert grid_config["column_values"] == list(range(13))
        assert set(grid_config["default_properties"]) == {"col", "colSM", "colMD", "colLG", "colXL", "colXXL"}

    def test_packaged_logging_config(self):
        logging_config = ConfigManager().get_logging_config()

        assert logging_config["version"] == 1
        assert "responsive_grid" in logging_config["loggers"]

    def test_user_overrides_are_merged(self, tmp_path, monkeypatch):
        (tmp_path / "default_grid.yml").write_text("empty_cell_text: Type here\n", encoding="utf-8")
        monkeypatch.setenv("RESPONSIVE_GRID_CONFIG_DIR", str(tmp_path))
        ConfigManager.reset()

        grid_config = ConfigManager().get_grid_config()

        assert grid_config["empty_cell_text"] == "Type here"
        assert grid_config["column_values"] == list(range(13))

    def test_invalid_user_file_is_ignored(self, tmp_path, monkeypatch, caplog):
        (tmp_path / "default_grid.yml").write_text("empty_cell_text: [unclosed\n", encoding="utf-8")
        monkeypatch.setenv("RESPONSIVE_GRID_CONFIG_DIR", str(tmp_path))
        ConfigManager.reset()

        with caplog.at_level(logging.ERROR, logger="responsive_grid.config.manager"):
            grid_config = ConfigManager().get_grid_config()

        assert grid_config["empty_cell_text"] == "Content goes here."
        assert "Could not parse user config" in caplog.text

    def test_reset_reloads(self):
        first = ConfigManager()
        ConfigManager.reset()

        assert ConfigManager() is not first


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        package_logger = logging.getLogger("responsive_grid")
        walker_logger = logging.getLogger("responsive_grid.core.walker")
        saved = (root.handlers[:], root.level, package_logger.handlers[:], package_logger.level,
                 package_logger.propagate, walker_logger.handlers[:], walker_logger.level)
        yield
        for handler in package_logger.handlers + walker_logger.handlers:
            if handler not in saved[2] and handler not in saved[5]:
                handler.close()
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
        package_logger.handlers[:] = saved[2]
        package_logger.setLevel(saved[3])
        package_logger.propagate = saved[4]
        walker_logger.handlers[:] = saved[5]
        walker_logger.setLevel(saved[6])

    def test_log_file_goes_to_configured_directory(self, tmp_path, monkeypatch):
        log_dir = tmp_path / "logs"
        monkeypatch.setenv("RESPONSIVE_GRID_LOG_DIR", str(log_dir))

        setup_logging()

        package_logger = logging.getLogger("responsive_grid")
        file_handlers = [h for h in package_logger.handlers if isinstance(h, logging.FileHandler)]
        assert log_dir.is_dir()
        assert [h.baseFilename for h in file_handlers] == [str(log_dir / "app.log")]
        assert package_logger.level == logging.INFO

    def test_debug_modules_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RESPONSIVE_GRID_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("RESPONSIVE_GRID_DEBUG_MODULES", " responsive_grid.core.walker , ")

        setup_logging()

        assert logging.getLogger("responsive_grid.core.walker").level == logging.DEBUG

    def test_minimal_fallback_without_logging_section(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RESPONSIVE_GRID_LOG_DIR", str(tmp_path))
        monkeypatch.setattr(ConfigManager, "get_logging_config", lambda self: {})

        setup_logging()

        assert logging.getLogger().level == logging.INFO
