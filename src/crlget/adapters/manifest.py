"""
Update manifest parser — component-update XML → UpdateCheck.

The update service answers with a document shaped like:

    <gupdate xmlns="http://www.google.com/update2/response" protocol="2.0">
      <app appid="hfnkpimlhhgieaddgfemjhofmfblmnib" status="ok">
        <updatecheck status="ok" codebase="http://.../crl-set.crx" fp="..."
                     hash="..." hash_sha256="..." size="..." version="..."/>
      </app>
    </gupdate>

Parsing is a small ROP chain: XML → matching <app> → <updatecheck> →
required attributes → UpdateCheck → status must be "ok".
Tags are matched on their local name so the response namespace does not matter.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping

from railway import ErrorCode, ResultFailures
from railway.result import Result

from crlget.domain.models import UpdateCheck

UPDATE_KEYS = ("status", "codebase", "fp", "hash", "hash_sha256", "size", "version")


def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2]


def _find_app(root: ET.Element, app_id: str) -> Result[ET.Element]:
    for element in root.iter():
        if _local_name(element.tag) == "app" and element.get("appid") == app_id:
            return Result.success(element)
    return ResultFailures.validation_error(f"Update manifest has no app with appid {app_id!r}")


def _find_updatecheck(app: ET.Element) -> Result[Mapping[str, str]]:
    for child in app:
        if _local_name(child.tag) == "updatecheck":
            return Result.success(dict(child.attrib))
    return Result.failure(ErrorCode.NOT_FOUND, "Update manifest contains no updatecheck")


def _require_keys(attributes: Mapping[str, str]) -> Result[Mapping[str, str]]:
    missing = [key for key in UPDATE_KEYS if key not in attributes]
    if missing:
        return ResultFailures.validation_error(
            f"Update check is missing attributes: {', '.join(missing)}"
        )
    return Result.success(attributes)


def parse_update_manifest(document: str | bytes, app_id: str) -> Result[UpdateCheck]:
    """
    Validate an update-check response for `app_id`.

    Returns Result[UpdateCheck] when the app is present and its update check
    is complete with status "ok".
    Returns VALIDATION_ERROR for unreadable XML, a wrong app or missing attributes,
    NOT_FOUND when no update check is offered, BUSINESS_RULE_ERROR when the status is not "ok".
    """
    return (
        Result.from_computation(
            lambda: ET.fromstring(document),
            ErrorCode.VALIDATION_ERROR,
            "Update manifest is not valid XML",
        )
        .flat_map(lambda root: _find_app(root, app_id))
        .flat_map(_find_updatecheck)
        .flat_map(_require_keys)
        .map(lambda attributes: UpdateCheck(
            app_id=app_id,
            **{key: attributes[key] for key in UPDATE_KEYS},
        ))
        .ensure(
            lambda update: update.status == "ok",
            ErrorCode.BUSINESS_RULE_ERROR,
            "Update check status is not ok",
        )
    )
