from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

SVG_NS = "http://www.w3.org/2000/svg"


def _stringify(attrs: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {k: str(v) for k, v in (attrs or {}).items() if v is not None}


class DrawSurface(ABC):
    """What the renderer needs from a drawing backend."""

    @abstractmethod
    def create_group(self, parent: Any, attrs: Optional[Dict[str, Any]] = None) -> Any: ...

    @abstractmethod
    def create_path(self, parent: Any, d: str, attrs: Optional[Dict[str, Any]] = None) -> Any: ...

    @abstractmethod
    def set_attributes(self, node: Any, attrs: Dict[str, Any]) -> None: ...

    @abstractmethod
    def clear(self, node: Any) -> None:
        """Removes every child of `node`."""

    @abstractmethod
    def raise_to_top(self, node: Any) -> None:
        """Moves `node` last among its siblings so it paints over them."""

    @abstractmethod
    def children(self, node: Any) -> List[Any]: ...


class SoupSurface(DrawSurface):
    """SVG drawn into a BeautifulSoup document."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup

    def create_svg(self, container: Tag, width: int, height: int) -> Tag:
        svg = self.soup.new_tag(
            "svg",
            attrs={
                "xmlns": SVG_NS,
                "width": str(width),
                "height": str(height),
                "viewBox": f"0 0 {width} {height}",
            },
        )
        container.append(svg)
        return svg

    def create_group(self, parent: Tag, attrs: Optional[Dict[str, Any]] = None) -> Tag:
        group = self.soup.new_tag("g", attrs=_stringify(attrs))
        parent.append(group)
        return group

    def create_path(self, parent: Tag, d: str, attrs: Optional[Dict[str, Any]] = None) -> Tag:
        path = self.soup.new_tag("path", attrs={"d": d, **_stringify(attrs)})
        parent.append(path)
        return path

    def set_attributes(self, node: Tag, attrs: Dict[str, Any]) -> None:
        for key, value in attrs.items():
            if value is None:
                node.attrs.pop(key, None)
            else:
                node[key] = str(value)

    def clear(self, node: Tag) -> None:
        node.clear(decompose=True)

    def raise_to_top(self, node: Tag) -> None:
        parent = node.parent
        if parent is None:
            return
        parent.append(node.extract())

    def children(self, node: Tag) -> List[Tag]:
        return [child for child in node.children if isinstance(child, Tag)]
