"""Attachment resolution strategies.

Some tables reference uploaded files through a column named
``<attachment>_file_name``.  While a table is serialized, every such column
is handed to an ``AttachmentResolver``, which may return one extra path
(relative to the application root) to include in the archive.

The serializer knows nothing about storage layout; that knowledge lives
entirely in the resolver.

Usage:
    from db_backupper.backup.attachments import TemplateAttachmentResolver

    resolver = TemplateAttachmentResolver(
        root_dir="/srv/app",
        template="public/system/{table}/{attachment}/{id}/original/{filename}",
    )
    resolver.resolve("users", {"id": 7, "avatar_file_name": "me.png"}, "avatar_file_name")
    # 'public/system/users/avatar/7/original/me.png' (if the file exists)
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

DEFAULT_ATTACHMENT_SUFFIX = "_file_name"
DEFAULT_ATTACHMENT_TEMPLATE = "public/system/{table}/{attachment}/{id}/original/{filename}"


class AttachmentResolver(Protocol):
    """Maps an attachment field of a row to an extra file to archive."""

    def resolve(
        self,
        table_name: str,
        row: dict[str, Any],
        field_name: str,
    ) -> str | Path | None:
        """Return a root-relative path to archive, or ``None`` for nothing."""
        ...


class NullAttachmentResolver:
    """Resolver that never adds files."""

    def resolve(self, table_name: str, row: dict[str, Any], field_name: str) -> None:
        return None


class CallableAttachmentResolver:
    """Adapts a plain function ``(table_name, row, field_name) -> path | None``."""

    def __init__(self, func: Callable[[str, dict[str, Any], str], str | Path | None]) -> None:
        self._func = func

    def resolve(self, table_name: str, row: dict[str, Any], field_name: str) -> str | Path | None:
        return self._func(table_name, row, field_name)


class TemplateAttachmentResolver:
    """Builds attachment paths from a format template.

    Available placeholders: ``{table}``, ``{attachment}`` (field name without
    the suffix), ``{filename}`` (the field value), and every column of the
    row (e.g. ``{id}``).  Paths whose file does not exist under ``root_dir``
    are skipped, as are rows with an empty file name.

    Args:
        root_dir: Application root the template is relative to.
        template: ``str.format`` template producing a relative path.
        suffix: Field-name suffix marking attachment columns.
    """

    def __init__(
        self,
        root_dir: str | Path,
        template: str = DEFAULT_ATTACHMENT_TEMPLATE,
        suffix: str = DEFAULT_ATTACHMENT_SUFFIX,
    ) -> None:
        self._root = Path(root_dir)
        self._template = template
        self._suffix = suffix

    def resolve(self, table_name: str, row: dict[str, Any], field_name: str) -> str | None:
        filename = row.get(field_name)
        if not filename:
            return None

        attachment = field_name[: -len(self._suffix)] if field_name.endswith(self._suffix) else field_name
        values = {**row, "table": table_name, "attachment": attachment, "filename": filename}
        try:
            relative = self._template.format(**values)
        except KeyError as e:
            raise ValueError(
                f"Attachment template references unknown field {e} for table '{table_name}'"
            ) from e

        if not (self._root / relative).is_file():
            return None
        return relative
