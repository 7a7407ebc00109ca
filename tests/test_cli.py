"""Tests for the command line front end that do not need model weights."""

import importlib

import pytest
from huggingface_hub.utils import LocalEntryNotFoundError

from photo_ocr.cli import collect_images, main


def test_collect_images_from_directory(tmp_path):
    for name in ["b.png", "a.jpg", "c.jpg", "notes.txt"]:
        (tmp_path / name).write_bytes(b"")

    names = collect_images(image_dir=str(tmp_path))

    assert [p.name for p in names] == ["a.jpg", "c.jpg", "b.png"]


def test_collect_single_image():
    assert [p.name for p in collect_images(image="photo.jpg")] == ["photo.jpg"]


def test_missing_image_dir(tmp_path, capsys):
    assert main(["--image-dir", str(tmp_path / "absent")]) == 1
    assert "not found" in capsys.readouterr().err


def test_empty_image_dir(tmp_path, capsys):
    assert main(["--image-dir", str(tmp_path)]) == 1
    assert "No *.jpg or *.png" in capsys.readouterr().err


def test_bad_config_exits_with_error(tmp_path, capsys):
    config = tmp_path / "conf.yaml"
    config.write_text("detector:\n  limit_type: both\n", encoding="utf-8")

    assert main(["--config", str(config), "--image", str(tmp_path / "x.jpg")]) == 1
    assert "limit_type" in capsys.readouterr().err


def test_source_is_required():
    with pytest.raises(SystemExit):
        main([])


def test_offline_without_cached_models_exits_with_error(tmp_path, monkeypatch, capsys):
    def offline(repo_id, filename):
        raise LocalEntryNotFoundError("no network and not cached")

    monkeypatch.setattr(importlib.import_module("photo_ocr.models.registry"), "hf_hub_download", offline)
    config = tmp_path / "conf.yaml"
    config.write_text("", encoding="utf-8")

    assert main(["--config", str(config), "--image", str(tmp_path / "x.jpg")]) == 1
    assert "Could not download" in capsys.readouterr().err
