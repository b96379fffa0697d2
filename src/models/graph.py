"""
整数编号的无向图

IndexedGraph 是聚类系数引擎读取的图结构：
- 节点用 [0, upper_node_id_bound) 内的整数编号，删除节点后编号不复用，因此可能存在空洞
- 内部使用 networkx.Graph 存储，始终保持为简单无向图：
  自环被丢弃，重复边被合并（权重相加）
- 提供串行/并行/按度数均衡的节点遍历，以及均匀随机节点、随机邻居的抽样

引擎对图只读。调用任何算法期间，调用方不得修改图。
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple

import networkx as nx
import numpy as np

from src.utils.config import get_config
from src.utils.logger import get_logger

logger = get_logger()

# 每个线程分到的块数，块越多负载越均匀
CHUNKS_PER_WORKER = 4


class IndexedGraph:
    """
    整数编号的简单无向图（可带权）
    """

    def __init__(self, n: int = 0, weighted: bool = False) -> None:
        """
        初始化图

        Args:
            n: 初始节点数，节点编号为 0..n-1
            weighted: 是否为带权图
        """
        if n < 0:
            raise ValueError(f"节点数不能为负数，当前值: {n}")
        self._graph = nx.Graph()
        self._graph.add_nodes_from(range(n))
        self._bound = n
        self.weighted = weighted
        # 节点编号 -> 原始标签（from_networkx 时为原图节点）
        self.labels: List[Hashable] = list(range(n))

        self.dropped_self_loops = 0
        self.merged_parallel_edges = 0

        self._node_cache: Optional[List[int]] = None
        self._neighbor_cache: Dict[int, Tuple[int, ...]] = {}

    # ------------------------------------------------------------------
    # 构建与修改
    # ------------------------------------------------------------------
    @classmethod
    def from_networkx(cls, graph: nx.Graph, weight: Optional[str] = None) -> "IndexedGraph":
        """
        将任意 networkx 图折叠为简单无向 IndexedGraph

        - 节点按原图的迭代顺序编号为 0..n-1，原始标签保存在 labels 中
        - 忽略边方向，有向图中的互逆边视为重复边
        - 多重边合并，自环丢弃

        Args:
            graph: networkx 图（Graph/DiGraph/MultiGraph/MultiDiGraph）
            weight: 边权重属性名，为None时按无权图处理

        Returns:
            IndexedGraph 实例
        """
        indexed = cls(graph.number_of_nodes(), weighted=weight is not None)
        index = {node: i for i, node in enumerate(graph.nodes())}
        indexed.labels = list(index)

        # MultiGraph 的 edges(data=True) 会逐条产出重复边
        for u, v, data in graph.edges(data=True):
            w = float(data.get(weight, 1.0)) if weight is not None else 1.0
            indexed.add_edge(index[u], index[v], weight=w)

        logger.debug(
            f"networkx图转换完成: 节点数={indexed.number_of_nodes()}, 边数={indexed.number_of_edges()}, "
            f"丢弃自环={indexed.dropped_self_loops}, 合并重复边={indexed.merged_parallel_edges}"
        )
        return indexed

    def add_node(self, label: Optional[Hashable] = None) -> int:
        """
        添加一个新节点

        Returns:
            新节点编号（等于添加前的 upper_node_id_bound）
        """
        u = self._bound
        self._graph.add_node(u)
        self._bound += 1
        self.labels.append(u if label is None else label)
        self._node_cache = None
        return u

    def add_nodes(self, n: int) -> List[int]:
        """批量添加 n 个节点，返回新节点编号"""
        return [self.add_node() for _ in range(n)]

    def remove_node(self, u: int) -> None:
        """
        删除节点及其关联边，编号不会被复用
        """
        self._check_node(u)
        for v in self._graph.adj[u]:
            self._neighbor_cache.pop(v, None)
        self._graph.remove_node(u)
        self._neighbor_cache.pop(u, None)
        self._node_cache = None

    def add_edge(self, u: int, v: int, weight: float = 1.0) -> None:
        """
        添加无向边

        自环被丢弃；已存在的边不会重复添加，权重累加到已有边上。
        """
        self._check_node(u)
        self._check_node(v)
        if u == v:
            self.dropped_self_loops += 1
            logger.debug(f"丢弃自环: {u}")
            return

        if self._graph.has_edge(u, v):
            self.merged_parallel_edges += 1
            self._graph[u][v]["weight"] += weight
            return

        self._graph.add_edge(u, v, weight=weight)
        self._neighbor_cache.pop(u, None)
        self._neighbor_cache.pop(v, None)

    # ------------------------------------------------------------------
    # 只读查询
    # ------------------------------------------------------------------
    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    def upper_node_id_bound(self) -> int:
        """大于所有已分配节点编号的最小整数"""
        return self._bound

    def has_node(self, u: int) -> bool:
        return 0 <= u < self._bound and u in self._graph

    def degree(self, u: int) -> int:
        self._check_node(u)
        return len(self._graph.adj[u])

    def neighbors(self, u: int) -> Tuple[int, ...]:
        """u 的邻居（按插入顺序），结果会被缓存"""
        cached = self._neighbor_cache.get(u)
        if cached is None:
            self._check_node(u)
            cached = tuple(self._graph.adj[u])
            self._neighbor_cache[u] = cached
        return cached

    def has_edge(self, u: int, v: int) -> bool:
        return self._graph.has_edge(u, v)

    def weight(self, u: int, v: int) -> float:
        if not self._graph.has_edge(u, v):
            raise ValueError(f"边不存在: ({u}, {v})")
        return float(self._graph[u][v]["weight"]) if self.weighted else 1.0

    def total_edge_weight(self) -> float:
        """所有边的权重之和，无权图等于边数"""
        if not self.weighted:
            return float(self._graph.number_of_edges())
        return float(self._graph.size(weight="weight"))

    def existence_mask(self) -> np.ndarray:
        """长度为 upper_node_id_bound 的布尔数组，标记编号是否存在"""
        mask = np.zeros(self._bound, dtype=bool)
        nodes = self._nodes()
        if nodes:
            mask[nodes] = True
        return mask

    # ------------------------------------------------------------------
    # 遍历
    # ------------------------------------------------------------------
    def nodes(self) -> Iterator[int]:
        """按编号升序遍历存在的节点"""
        return iter(self._nodes())

    def for_nodes(self, fn: Callable[[int], Any]) -> None:
        for u in self._nodes():
            fn(u)

    def for_edges_of(self, u: int, fn: Callable[[int, int], Any]) -> None:
        """对 u 的每条关联边调用 fn(u, v)"""
        for v in self.neighbors(u):
            fn(u, v)

    def parallel_for_nodes(
        self,
        fn: Callable[[int], Any],
        balanced: bool = False,
        max_workers: Optional[int] = None,
    ) -> None:
        """
        并行地对每个节点调用 fn(u)

        fn 只能写入属于 u 自己的位置，不同节点之间不得共享可变状态。

        Args:
            fn: 节点回调
            balanced: 是否按度数切分任务块（三角形计数的代价与度数相关）
            max_workers: 线程数，为None时使用配置
        """
        nodes = self._nodes()
        workers = _resolve_workers(max_workers)
        if workers == 1 or len(nodes) < 2:
            for u in nodes:
                fn(u)
            return

        chunks = self._split(nodes, workers * CHUNKS_PER_WORKER, balanced)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_run_chunk, fn, chunk) for chunk in chunks]
            for future in as_completed(futures):
                # 工作线程中的异常在这里重新抛出
                future.result()

    def parallel_sum_for_nodes(
        self,
        fn: Callable[[int], float],
        max_workers: Optional[int] = None,
    ) -> float:
        """
        并行求 sum(fn(u))

        各块的部分和与总和都用 math.fsum 计算，结果与求和顺序无关。
        """
        nodes = self._nodes()
        workers = _resolve_workers(max_workers)
        if workers == 1 or len(nodes) < 2:
            return math.fsum(fn(u) for u in nodes)

        chunks = self._split(nodes, workers * CHUNKS_PER_WORKER, balanced=False)
        partials: List[float] = []
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_sum_chunk, fn, chunk) for chunk in chunks]
            for future in as_completed(futures):
                partials.append(future.result())
        return math.fsum(partials)

    # ------------------------------------------------------------------
    # 随机抽样
    # ------------------------------------------------------------------
    def random_node(self, rng: np.random.Generator) -> int:
        """在存在的节点中均匀随机抽取一个"""
        nodes = self._nodes()
        if not nodes:
            raise ValueError("图中没有节点，无法随机抽取节点")
        return nodes[int(rng.integers(len(nodes)))]

    def random_neighbor(self, u: int, rng: np.random.Generator) -> int:
        """在 u 的邻居中均匀随机抽取一个"""
        neighbors = self.neighbors(u)
        if not neighbors:
            raise ValueError(f"节点 {u} 没有邻居，无法随机抽取邻居")
        return neighbors[int(rng.integers(len(neighbors)))]

    # ------------------------------------------------------------------
    def _nodes(self) -> List[int]:
        if self._node_cache is None:
            self._node_cache = sorted(self._graph.nodes())
        return self._node_cache

    def _check_node(self, u: int) -> None:
        if not self.has_node(u):
            raise ValueError(f"节点不存在: {u}")

    def _split(self, nodes: List[int], parts: int, balanced: bool) -> List[List[int]]:
        """
        将节点列表切分为至多 parts 个连续块

        balanced=True 时按 (度数 + 1) 的累计和在等分点处切分，否则按节点数等分。
        """
        if not balanced:
            return [chunk.tolist() for chunk in np.array_split(np.asarray(nodes), parts) if len(chunk)]

        cost = np.fromiter((len(self._graph.adj[u]) + 1 for u in nodes), dtype=np.int64, count=len(nodes))
        cumulative = np.cumsum(cost)
        targets = np.linspace(0, cumulative[-1], parts + 1)[1:-1]
        cuts = np.searchsorted(cumulative, targets, side="left") + 1
        return [chunk.tolist() for chunk in np.split(np.asarray(nodes), cuts) if len(chunk)]

    def __repr__(self) -> str:
        return (
            f"IndexedGraph(nodes={self.number_of_nodes()}, edges={self.number_of_edges()}, "
            f"bound={self._bound}, weighted={self.weighted})"
        )


def _resolve_workers(max_workers: Optional[int]) -> int:
    if max_workers is None:
        max_workers = get_config().max_workers
    if max_workers < 1:
        raise ValueError(f"线程数必须 >= 1，当前值: {max_workers}")
    return max_workers


def _run_chunk(fn: Callable[[int], Any], chunk: List[int]) -> None:
    for u in chunk:
        fn(u)


def _sum_chunk(fn: Callable[[int], float], chunk: List[int]) -> float:
    return math.fsum(fn(u) for u in chunk)
