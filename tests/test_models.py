#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
数据模型测试
"""

import io
from pathlib import Path

import pytest
from pydantic import ValidationError

from kloudinary.models.asset import InputKind, PathInput, StreamInput, source_label, to_upload_input
from kloudinary.models.metadata import Meta
from kloudinary.models.upload_config import DEFAULT_MAX_ASSET_SIZE, UploadConfiguration
from kloudinary.models.upload_result import BatchSummary, UploadOutcome, UploadResult
from kloudinary.utils.exceptions import BackendError, UnsupportedInputError


class TestMeta:
    """元数据存储测试"""

    def test_add_lowercases_key(self):
        meta = Meta()
        meta.add("Author", "alice")
        assert meta == {"author": "alice"}
        assert meta.has("AUTHOR")

    def test_add_overwrites(self):
        meta = Meta()
        meta.add("tag", 1)
        meta.add("TAG", 2)
        assert meta == {"tag": 2}

    def test_remove(self):
        meta = Meta()
        meta.add("tag", 1)
        meta.remove("Tag")
        assert "tag" not in meta
        # 不存在的键
        meta.remove("missing")
        assert meta == {}

    def test_snapshot_is_independent(self):
        meta = Meta()
        meta.add("a", 1)
        snapshot = meta.snapshot()
        meta.add("b", 2)
        assert snapshot == {"a": 1}
        assert type(snapshot) is dict

    def test_dict_interface_lowercases_keys(self):
        meta = Meta({"Owner": "qa"}, Project="demo")
        assert meta == {"owner": "qa", "project": "demo"}

        meta["Tag"] = 1
        meta.update({"COLOR": "red"}, Size=3)
        assert meta.setdefault("TAG", 99) == 1
        assert meta == {"owner": "qa", "project": "demo", "tag": 1, "color": "red", "size": 3}

        assert "OWNER" in meta
        assert meta["Color"] == "red"
        assert meta.get("SIZE") == 3
        assert meta.pop("Project") == "demo"
        del meta["TAG"]
        assert set(meta) == {"owner", "color", "size"}


class TestUploadInput:
    """上传输入解析测试"""

    def test_string_path(self):
        upload_input = to_upload_input("photos/a.png")
        assert isinstance(upload_input, PathInput)
        assert upload_input.path == "photos/a.png"
        assert upload_input.kind == InputKind.PATH

    def test_pathlike(self):
        upload_input = to_upload_input(Path("docs") / "b.pdf")
        assert isinstance(upload_input, PathInput)
        assert upload_input.path.endswith("b.pdf")

    def test_bytes(self):
        upload_input = to_upload_input(b"raw bytes")
        assert isinstance(upload_input, StreamInput)
        assert upload_input.stream.read() == b"raw bytes"
        assert upload_input.kind == InputKind.STREAM

    def test_stream(self):
        stream = io.BytesIO(b"payload")
        upload_input = to_upload_input(stream)
        assert isinstance(upload_input, StreamInput)
        assert upload_input.stream is stream
        assert upload_input.display_name == "<stream>"

    def test_already_resolved(self):
        upload_input = PathInput("a.png")
        assert to_upload_input(upload_input) is upload_input

    @pytest.mark.parametrize("value", [42, None, 3.5, ["a.png"], ""])
    def test_unsupported(self, value):
        with pytest.raises(UnsupportedInputError):
            to_upload_input(value)

    @pytest.mark.parametrize("value,expected", [
        (b"\x00" * 2048, "<2048 bytes>"),
        (bytearray(b"abc"), "<3 bytes>"),
        ("photos/a.png", "photos/a.png"),
        (Path("docs") / "b.pdf", str(Path("docs") / "b.pdf")),
        (io.BytesIO(b"payload"), "<stream>"),
        (42, "<int>"),
    ])
    def test_source_label(self, value, expected):
        assert source_label(value) == expected


class TestUploadConfiguration:
    """上传配置测试"""

    def test_defaults(self):
        config = UploadConfiguration()
        assert config.max_concurrent_uploads == 1
        assert config.max_asset_size == DEFAULT_MAX_ASSET_SIZE
        assert config.max_upload_timeout == 60.0
        assert "png" in config.supported_extensions

    def test_strip_leading_dot(self):
        config = UploadConfiguration(supported_extensions=[".png", "pdf"])
        assert config.supported_extensions == ["png", "pdf"]

    @pytest.mark.parametrize("value", [0, -1])
    def test_invalid_concurrency(self, value):
        with pytest.raises(ValidationError):
            UploadConfiguration(max_concurrent_uploads=value)

    def test_invalid_assignment(self):
        """构造后的修改同样会校验"""
        config = UploadConfiguration()
        with pytest.raises(ValidationError):
            config.max_concurrent_uploads = 0
        with pytest.raises(ValidationError):
            config.max_upload_timeout = 0
        with pytest.raises(ValidationError):
            config.max_asset_size = -5
        assert config.max_concurrent_uploads == 1

    def test_valid_assignment(self):
        config = UploadConfiguration()
        config.max_concurrent_uploads = 8
        config.supported_extensions = []
        assert config.max_concurrent_uploads == 8
        assert config.supported_extensions == []


class TestUploadResult:
    """上传结果测试"""

    def test_from_response(self):
        result = UploadResult.from_response({
            "public_id": "images/a.png",
            "secure_url": "https://res.cloudinary.com/demo/image/upload/images/a.png",
            "url": "http://res.cloudinary.com/demo/image/upload/images/a.png",
            "resource_type": "image",
            "format": "png",
            "bytes": 1024,
            "folder": "images",
        })
        assert result.public_id == "images/a.png"
        assert result.size_bytes == 1024
        assert result.has_error is False

    def test_from_error_response(self):
        result = UploadResult.from_response({"error": {"message": "Invalid image file"}})
        assert result.has_error is True
        assert result.error_message == "Invalid image file"

    def test_frozen(self):
        result = UploadResult(public_id="a")
        with pytest.raises(ValidationError):
            result.public_id = "b"


class TestUploadOutcome:
    """上传记录测试"""

    def test_success(self):
        outcome = UploadOutcome(source="a.png", result=UploadResult(public_id="a.png"), latency=0.5)
        assert outcome.succeeded is True
        assert outcome.error_text is None
        assert outcome.to_dict()["public_id"] == "a.png"

    def test_transport_error(self):
        outcome = UploadOutcome(source="a.png", error=BackendError("connection reset"))
        assert outcome.succeeded is False
        assert "connection reset" in outcome.error_text

    def test_backend_reported_error(self):
        """传输成功但后端报告错误，同样视为失败"""
        outcome = UploadOutcome(source="a.png", result=UploadResult(error_message="Invalid image file"))
        assert outcome.succeeded is False
        assert outcome.error_text == "Invalid image file"

    def test_bytes_source_not_expanded(self):
        payload = b"\xff" * 10000
        outcome = UploadOutcome(source=payload, error=BackendError("connection reset"))
        assert outcome.label == "<10000 bytes>"
        assert outcome.to_dict()["source"] == "<10000 bytes>"


class TestBatchSummary:
    """批量统计测试"""

    def test_from_outcomes(self):
        outcomes = [
            UploadOutcome(source="a", result=UploadResult(public_id="a"), latency=1.0),
            UploadOutcome(source="b", result=UploadResult(public_id="b"), latency=2.0),
            UploadOutcome(source="c", error=BackendError("boom"), latency=3.0),
            UploadOutcome(source="d", result=UploadResult(error_message="bad"), latency=2.0),
        ]
        summary = BatchSummary.from_outcomes(outcomes, duration=4.0)
        assert summary.total == 4
        assert summary.succeeded == 2
        assert summary.failed == 2
        assert summary.success_rate == 50.0
        assert summary.average_latency == 2.0
        assert summary.average_time == 1.0

    def test_empty(self):
        summary = BatchSummary.from_outcomes([])
        assert summary.total == 0
        assert summary.success_rate == 0.0
        assert summary.average_time == 0.0
