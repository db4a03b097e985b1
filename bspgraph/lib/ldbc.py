"""LDBC Graphalytics dataset parser.

Parses the standard LDBC file formats:
- ``.v``  -- one vertex ID (int) per line
- ``.e``  -- ``src dst [weight]`` per line (space-separated)
- ``.properties`` -- Java properties format with graph metadata
- reference output -- ``vertex_id value`` per line

External vertex ids are arbitrary integers. The engine works on dense
0-based indices, assigned in ascending order of external id; ``LdbcDataset``
holds the translation in both directions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..engine import Graph
from ..errors import GraphError, InvalidSourceVertex


# ---------------------------------------------------------------------------
# File parsers
# ---------------------------------------------------------------------------

def load_properties(path: Path | str) -> dict[str, str]:
    """Parse a ``.properties`` file (Java properties: key=value).

    Lines starting with ``#`` are comments and are skipped.
    """
    path = Path(path)
    props: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            props[key.strip()] = value.strip()
    return props


def load_vertices(path: Path | str) -> list[int]:
    """Parse a ``.v`` file -- one vertex ID per line."""
    path = Path(path)
    vertices: list[int] = []
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            vertices.append(int(line.split()[0]))
        except ValueError:
            raise GraphError(f"{path}:{lineno}: bad vertex id '{line}'") from None
    return vertices


def load_edges(path: Path | str) -> list[tuple[int, int, float]]:
    """Parse a ``.e`` file -- ``src dst [weight]`` per line (space-separated).

    Weight defaults to 1.0 if not present in the file.
    """
    path = Path(path)
    edges: list[tuple[int, int, float]] = []
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) not in (2, 3):
            raise GraphError(
                f"{path}:{lineno}: bad edge line (expected 2 or 3 fields): '{line}'"
            )
        try:
            weight = float(parts[2]) if len(parts) == 3 else 1.0
            edges.append((int(parts[0]), int(parts[1]), weight))
        except ValueError:
            raise GraphError(f"{path}:{lineno}: bad edge line: '{line}'") from None
    return edges


def load_reference(path: Path | str) -> dict[int, str]:
    """Parse a reference output file -- ``vertex_id value`` per line.

    Values are kept as raw strings so the caller can parse them according to
    the algorithm (int for BFS/WCC/CDLP, float for PageRank/LCC/SSSP).
    """
    path = Path(path)
    ref: dict[int, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) != 2:
            raise GraphError(f"bad reference line: '{line}'")
        ref[int(parts[0])] = parts[1]
    return ref


def _normalize_properties(props: dict[str, str], name: str) -> dict[str, str]:
    """Map LDBC's ``graph.<name>.<key>`` form onto the short keys used here.

    ``graph.<name>.directed`` becomes ``graph.directed``,
    ``graph.<name>.meta.vertices`` becomes ``meta.vertices`` and
    ``graph.<name>.bfs.source-vertex`` becomes ``algorithms.bfs.source-vertex``.
    Keys already in short form are kept as they are.
    """
    prefix = f"graph.{name}."
    out = dict(props)
    for key, value in props.items():
        if not key.startswith(prefix):
            continue
        short = key[len(prefix):]
        if short == "directed":
            out.setdefault("graph.directed", value)
        elif short.startswith("meta."):
            out.setdefault(short, value)
        elif short.split(".", 1)[0] in ("bfs", "sssp", "pr", "cdlp", "wcc", "lcc"):
            out.setdefault(f"algorithms.{short}", value)
    return out


# ---------------------------------------------------------------------------
# Dataset dataclass
# ---------------------------------------------------------------------------

@dataclass
class LdbcDataset:
    """An LDBC Graphalytics dataset (vertices + edges + metadata)."""

    name: str
    directed: bool
    vertex_ids: list[int]                  # internal index -> external id (ascending)
    edges: list[tuple[int, int, float]]    # external ids, as read
    properties: dict[str, str] = field(default_factory=dict)
    data_dir: Path | None = None
    _index: dict[int, int] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self._index:
            self._index = {vid: i for i, vid in enumerate(self.vertex_ids)}

    @property
    def num_vertices(self) -> int:
        return len(self.vertex_ids)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    def index_of(self, external_id: int) -> int:
        """Internal index of *external_id*; ``InvalidSourceVertex`` if unknown."""
        try:
            return self._index[external_id]
        except KeyError:
            raise InvalidSourceVertex(
                external_id,
                self.num_vertices,
                f"invalid source vertex {external_id} (not a vertex of {self.name})",
            ) from None

    def external_id(self, index: int) -> int:
        return self.vertex_ids[index]

    def graph(self, num_partitions: int = 1, directed: bool | None = None) -> Graph:
        """Build an engine ``Graph`` over internal indices."""
        index = self._index
        return Graph(
            self.num_vertices,
            ((index[src], index[dst], w) for src, dst, w in self.edges),
            directed=self.directed if directed is None else directed,
            num_partitions=num_partitions,
        )


def build_dataset(
    name: str,
    vertices: list[int] | None,
    edges: list[tuple[int, int, float]],
    *,
    directed: bool = True,
    properties: dict[str, str] | None = None,
    data_dir: Path | None = None,
) -> LdbcDataset:
    """Assemble a dataset, sorting ids and checking every edge endpoint.

    With *vertices* ``None`` the vertex set is every id that occurs in an edge.
    """
    if vertices is None:
        ids = sorted({v for src, dst, _ in edges for v in (src, dst)})
    else:
        ids = sorted(vertices)
        for prev, cur in zip(ids, ids[1:]):
            if prev == cur:
                raise GraphError(f"duplicate vertex id {cur}")
        known = set(ids)
        for src, dst, _ in edges:
            for v in (src, dst):
                if v not in known:
                    raise GraphError(
                        f"edge ({src}, {dst}) is invalid since vertex id {v} is unknown"
                    )
    return LdbcDataset(
        name=name,
        directed=directed,
        vertex_ids=ids,
        edges=edges,
        properties=properties or {},
        data_dir=data_dir,
    )


def _count(properties: dict[str, str], key: str) -> int | None:
    value = properties.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise GraphError(f"bad value for {key}: {value!r}") from None


def _dataset_paths(path: Path) -> tuple[str, Path, Path, Path]:
    """Resolve ``(name, .v, .e, .properties)`` for a directory or an ``.e`` file."""
    if path.is_dir():
        name = path.name
        base = path / name
    else:
        name = path.stem
        base = path.with_suffix("")
    return name, Path(f"{base}.v"), Path(f"{base}.e"), Path(f"{base}.properties")


def load_dataset(path: Path | str, directed: bool | None = None) -> LdbcDataset:
    """Load an LDBC dataset and validate counts.

    *path* is either a dataset directory holding ``<name>.v``, ``<name>.e``
    and optionally ``<name>.properties`` (``<name>`` is the directory's
    basename), or the ``.e`` file itself with optional sibling ``.v`` and
    ``.properties`` files. *directed* overrides the properties file.
    """
    path = Path(path)
    name, v_path, e_path, props_path = _dataset_paths(path)
    if not e_path.exists():
        raise GraphError(f"edge file not found: {e_path}")

    edges = load_edges(e_path)
    vertices = load_vertices(v_path) if v_path.exists() else None

    properties: dict[str, str] = {}
    if props_path.exists():
        properties = _normalize_properties(load_properties(props_path), name)

    is_directed = properties.get("graph.directed", "true").lower() != "false"
    if directed is not None:
        is_directed = directed

    # Validate counts if the properties file provides them.
    expected_v = _count(properties, "meta.vertices")
    if expected_v is not None and vertices is not None and len(vertices) != expected_v:
        raise GraphError(
            f"vertex count mismatch: file has {len(vertices)}, "
            f"properties says {expected_v}"
        )
    expected_e = _count(properties, "meta.edges")
    if expected_e is not None and len(edges) != expected_e:
        raise GraphError(
            f"edge count mismatch: file has {len(edges)}, "
            f"properties says {expected_e}"
        )

    return build_dataset(
        name,
        vertices,
        edges,
        directed=is_directed,
        properties=properties,
        data_dir=path if path.is_dir() else path.parent,
    )
