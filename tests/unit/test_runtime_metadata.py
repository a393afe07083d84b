from __future__ import annotations

import plistlib

import pytest

from domain.runtime import Version
from services.runtime.errors import SourceUnavailable
from services.runtime.metadata import encode_version_metadata, parse_version_metadata


@pytest.mark.parametrize(
    "payload",
    [
        {"version": "9.21.0"},
        {"version": {"major": 9, "minor": 21, "patch": 0}},
        {"version": [9, 21, 0]},
        {"version": 9.21},
    ],
)
def test_parse_accepts_every_version_encoding(payload) -> None:
    assert parse_version_metadata(plistlib.dumps(payload)) == Version(9, 21, 0)


def test_parse_accepts_bare_integer() -> None:
    assert parse_version_metadata(plistlib.dumps({"version": 8})) == Version(8, 0, 0)


def test_parse_accepts_xml_written_by_other_tools() -> None:
    document = b"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>version</key>
    <dict>
        <key>major</key><integer>2</integer>
        <key>minor</key><integer>5</integer>
        <key>patch</key><integer>1</integer>
    </dict>
</dict>
</plist>
"""
    assert parse_version_metadata(document) == Version(2, 5, 1)


@pytest.mark.parametrize(
    "data",
    [
        b"not a plist",
        plistlib.dumps({"name": "runtime"}),
        plistlib.dumps({"version": "latest"}),
        plistlib.dumps({"version": True}),
    ],
)
def test_parse_rejects_unusable_documents(data: bytes) -> None:
    with pytest.raises(SourceUnavailable):
        parse_version_metadata(data)


def test_encoded_metadata_uses_the_string_form() -> None:
    assert plistlib.loads(encode_version_metadata(Version(11, 2, 0))) == {"version": "11.2.0"}
