"""
Content renderers for the supported representations.
"""

import json
import xml.etree.ElementTree as ET
from datetime import date, datetime
from typing import Any, Optional

import yaml

from .config import XMLOptions
from .naming import singularize


class ContentRenderer:
    """Base class for content renderers.

    ``extension`` is the path suffix selecting the renderer (``/users.xml``),
    ``media_type`` the Content-Type it produces and the Accept value selecting it.
    """

    extension: str = ""
    media_type: str = ""

    def render(self, data: Any, root: str) -> str:
        """Render the data as this content type.

        Args:
            data: JSON-like payload (dicts, lists, scalars)
            root: Label of the payload, used by formats that need a root element
        """
        raise NotImplementedError


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONRenderer(ContentRenderer):
    """JSON content renderer."""

    extension = "json"
    media_type = "application/json"

    def render(self, data: Any, root: str) -> str:
        return json.dumps(data, indent=2, default=_json_default)


class YAMLRenderer(ContentRenderer):
    """YAML content renderer, a direct structural dump of the payload."""

    extension = "yml"
    media_type = "text/x-yaml"

    def render(self, data: Any, root: str) -> str:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


class XMLRenderer(ContentRenderer):
    """XML content renderer.

    The payload becomes the content of an element named ``root``:

    - dict keys become child elements, or attributes when ``allow_attributes``
      is set and the key starts with ``attribute_prefix``
    - list items become children named after the singular of the enclosing
      element (``<users><user>..</user></users>``)
    - scalars become text; ``None`` an empty element; booleans ``true``/``false``
    """

    extension = "xml"
    media_type = "application/xml"

    def __init__(self, options: Optional[XMLOptions] = None):
        self.options = options or XMLOptions()

    def render(self, data: Any, root: str) -> str:
        element = ET.Element(root)
        self._fill(element, data)
        if self.options.indent:
            ET.indent(element, space=self.options.indent)

        document = ET.tostring(element, encoding="unicode")
        if self.options.manifest:
            return "<?xml version='1.0' encoding='utf-8'?>\n" + document
        return document

    def _fill(self, element: ET.Element, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                key = str(key)
                if self._is_attribute(key, value):
                    element.set(key[len(self.options.attribute_prefix):], self._text(value))
                else:
                    self._fill(ET.SubElement(element, key), value)
        elif isinstance(data, (list, tuple)):
            child_name = self._child_name(element.tag)
            for item in data:
                self._fill(ET.SubElement(element, child_name), item)
        elif data is not None:
            element.text = self._text(data)

    def _is_attribute(self, key: str, value: Any) -> bool:
        prefix = self.options.attribute_prefix
        return (
            self.options.allow_attributes
            and bool(prefix)
            and key.startswith(prefix)
            and len(key) > len(prefix)
            and not isinstance(value, (dict, list, tuple))
        )

    def _child_name(self, parent: str) -> str:
        if self.options.singularize_children:
            return singularize(parent) or self.options.item_element
        return self.options.item_element

    @staticmethod
    def _text(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if value is None:
            return ""
        return str(value)
