"""Tests for command line handling at startup."""

from yolo_inspector.app import load_config, parse_args
from yolo_inspector.core.config import DEFAULT_CONFIG_PATH, ConfigManager


class TestParseArgs:
    """Tests for parse_args."""

    def test_defaults(self):
        args = parse_args([])

        assert args.images is None
        assert args.labels is None
        assert args.config == DEFAULT_CONFIG_PATH
        assert not args.debug

    def test_folders_and_flags(self, tmp_path):
        args = parse_args([
            str(tmp_path), "--labels", "labels", "--classes", "data.yaml",
            "--config", str(tmp_path / "c.yaml"), "--debug",
        ])

        assert args.images == str(tmp_path)
        assert args.labels == "labels"
        assert args.classes == "data.yaml"
        assert args.config == tmp_path / "c.yaml"
        assert args.debug


class TestLoadConfig:
    """Tests for load_config."""

    def test_overrides_persist(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        images = tmp_path / "images"
        images.mkdir()

        manager = load_config(parse_args([str(images), "--labels", str(tmp_path), "--config", str(config_path)]))

        assert manager.config.images_directory == str(images.resolve())
        assert manager.config.labels_directory == str(tmp_path.resolve())
        assert ConfigManager(config_path).config.images_directory == str(images.resolve())

    def test_no_overrides_keeps_stored_folders(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        ConfigManager(config_path).update(images_directory="/data/images")

        manager = load_config(parse_args(["--config", str(config_path)]))

        assert manager.config.images_directory == "/data/images"
        assert manager.config.classes_file == ""
