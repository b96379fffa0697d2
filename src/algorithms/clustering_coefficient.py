"""
聚类系数计算算法

提供精确与蒙特卡洛近似两类算法，衡量图的局部与全局三角形密度：
1. exact_local      - 每个节点的局部聚类系数
2. avg_local        - 度数 >= 2 的节点上局部聚类系数的平均值
3. approx_avg_local - 均匀抽取节点的近似平均局部聚类系数
4. exact_global     - 全局聚类系数（传递性）
5. approx_global    - 按三元组质量加权抽取节点的近似全局聚类系数

精确算法的时间复杂度为 O(Σ_u Σ_{v∈N(u)} deg(v))，按节点并行；
近似算法的时间复杂度与试验次数成正比，串行执行。

前提：调用期间不得修改图。
"""

from __future__ import annotations

import math
import numbers
from typing import Optional

import numpy as np

from src.algorithms.errors import SamplingError, UndefinedStatisticError
from src.algorithms.weighted_sampler import WeightedVertexSampler, triple_mass
from src.models.coefficients import NodeCoefficients
from src.models.graph import IndexedGraph
from src.utils.config import get_config
from src.utils.logger import get_logger

logger = get_logger()


def exact_local(graph: IndexedGraph, max_workers: Optional[int] = None) -> NodeCoefficients:
    """
    计算每个节点的局部聚类系数

    c(u) = 2·|E(N(u))| / (d·(d-1))，d < 2 时为 0.0。
    遍历 u 的每条边 (u, v) 和 v 的每条边 (v, w)，若 w 也是 u 的邻居则计数加一；
    每个三角形会从两条边各被发现一次，因此计数恰为三角形数的两倍，无需再除以2。

    Args:
        graph: 整数编号的简单无向图
        max_workers: 线程数，为None时使用配置

    Returns:
        NodeCoefficients，不存在的编号处为 0.0
    """
    bound = graph.upper_node_id_bound()
    coefficients = np.zeros(bound, dtype=np.float64)

    def _local(u: int) -> None:
        d = graph.degree(u)
        if d < 2:
            coefficients[u] = 0.0
            return

        u_neighbors = set(graph.neighbors(u))
        u_neighbors.discard(u)

        triangles = 0
        for v in graph.neighbors(u):
            for w in graph.neighbors(v):
                if w in u_neighbors:
                    triangles += 1
        coefficients[u] = triangles / (d * (d - 1))

    graph.parallel_for_nodes(_local, balanced=True, max_workers=max_workers)
    logger.debug(f"局部聚类系数计算完成: 节点数={graph.number_of_nodes()}")

    return NodeCoefficients(values=coefficients, exists=graph.existence_mask())


def avg_local(graph: IndexedGraph, max_workers: Optional[int] = None) -> float:
    """
    计算平均局部聚类系数

    只对度数 >= 2 的节点求平均，度数 < 2 的节点既不计入分子也不计入分母。

    Returns:
        平均值；如果没有度数 >= 2 的节点，返回 nan（不会被当作 0.0）
    """
    coefficients = exact_local(graph, max_workers=max_workers)

    values = [coefficients[u] for u in graph.nodes() if graph.degree(u) >= 2]
    if not values:
        logger.warning("没有度数 >= 2 的节点，平均局部聚类系数无定义，返回 nan")
        return math.nan

    return math.fsum(values) / len(values)


def approx_avg_local(
    graph: IndexedGraph,
    trials: int,
    rng: Optional[np.random.Generator] = None,
    max_redraws: Optional[int] = None,
) -> float:
    """
    蒙特卡洛估计平均局部聚类系数

    每次试验：均匀抽取节点 v（度数 < 2 时重抽，不计入试验次数），
    再独立均匀地抽取 v 的两个不同邻居 u、w，若 u 与 w 相邻则命中。

    Args:
        graph: 整数编号的简单无向图
        trials: 有效试验次数（正整数）
        rng: 随机数生成器，为None时按配置的种子创建
        max_redraws: 抽取不同邻居时的最大重抽次数，为None时使用配置

    Returns:
        命中次数 / 试验次数

    Raises:
        ValueError: trials 不是正整数
        UndefinedStatisticError: 图中没有度数 >= 2 的节点
        SamplingError: 重抽次数超过上限
    """
    _check_trials(trials)
    rng = _resolve_rng(rng)
    max_redraws = _resolve_max_redraws(max_redraws)

    if not any(graph.degree(u) >= 2 for u in graph.nodes()):
        raise UndefinedStatisticError("图中没有度数 >= 2 的节点，无法估计平均局部聚类系数")

    hits = 0
    discarded = 0
    k = 0
    while k < trials:
        v = graph.random_node(rng)
        if graph.degree(v) < 2:
            # 该节点不可能是三角形或长度为2路径的中心
            discarded += 1
            continue

        if _closes_wedge(graph, v, rng, max_redraws):
            hits += 1
        k += 1

    logger.debug(f"近似平均局部聚类系数: 试验={trials}, 命中={hits}, 丢弃={discarded}")
    return hits / trials


def exact_global(graph: IndexedGraph, max_workers: Optional[int] = None) -> float:
    """
    计算全局聚类系数（传递性）

    对每个度数 > 1 的节点 u，遍历边 (u, v) 与 (v, w)，若 u 与 w 相邻则计数加一。
    分子为所有节点计数之和（每个三角形被计 6 次），
    分母为 Σ deg(u)·(deg(u)-1)（有序开三元组数）；两边的重数约定一致，比值即传递性。

    Returns:
        传递性；如果分母为 0（没有度数 >= 2 的节点），返回 nan
    """
    bound = graph.upper_node_id_bound()
    # 每个节点一个计数器，只由处理该节点的任务写入
    triangles = np.zeros(bound, dtype=np.int64)

    def _count(u: int) -> None:
        tr = 0
        if graph.degree(u) > 1:
            for v in graph.neighbors(u):
                for w in graph.neighbors(v):
                    if graph.has_edge(u, w):
                        tr += 1
        triangles[u] = tr

    graph.parallel_for_nodes(_count, balanced=True, max_workers=max_workers)

    denominator = graph.parallel_sum_for_nodes(
        lambda u: triple_mass(graph.degree(u)), max_workers=max_workers
    )
    numerator = graph.parallel_sum_for_nodes(lambda u: int(triangles[u]), max_workers=max_workers)

    if denominator == 0:
        logger.warning("没有度数 >= 2 的节点，全局聚类系数无定义，返回 nan")
        return math.nan

    logger.debug(f"全局聚类系数计算完成: 三角形计数={numerator:.0f}, 三元组计数={denominator:.0f}")
    return numerator / denominator


def approx_global(
    graph: IndexedGraph,
    trials: int,
    rng: Optional[np.random.Generator] = None,
    max_redraws: Optional[int] = None,
) -> float:
    """
    蒙特卡洛估计全局聚类系数（传递性）

    节点按 deg(v)·(deg(v)-1) 加权抽取，与 exact_global 分母的权重一致；
    均匀抽取节点估计的是平均局部聚类系数，而不是传递性。

    Args:
        graph: 整数编号的简单无向图
        trials: 有效试验次数（正整数）
        rng: 随机数生成器，为None时按配置的种子创建
        max_redraws: 抽取不同邻居时的最大重抽次数，为None时使用配置

    Returns:
        命中次数 / 试验次数

    Raises:
        ValueError: trials 不是正整数
        UndefinedStatisticError: 三元组总质量为 0
        SamplingError: 重抽次数超过上限
    """
    _check_trials(trials)
    rng = _resolve_rng(rng)
    max_redraws = _resolve_max_redraws(max_redraws)

    sampler = WeightedVertexSampler(graph)

    hits = 0
    discarded = 0
    k = 0
    while k < trials:
        v = sampler.sample(rng)
        if graph.degree(v) < 2:
            # 权重正确时不会发生
            discarded += 1
            continue

        if _closes_wedge(graph, v, rng, max_redraws):
            hits += 1
        k += 1

    if discarded:
        logger.warning(f"加权抽样抽到了 {discarded} 个度数 < 2 的节点")
    logger.debug(f"近似全局聚类系数: 试验={trials}, 命中={hits}")
    return hits / trials


def _closes_wedge(graph: IndexedGraph, v: int, rng: np.random.Generator, max_redraws: int) -> bool:
    """抽取 v 的两个不同邻居，判断它们是否相邻"""
    u = graph.random_neighbor(v, rng)
    w = graph.random_neighbor(v, rng)

    redraws = 0
    while u == w:
        redraws += 1
        if redraws > max_redraws:
            raise SamplingError(
                f"节点 {v} 在 {max_redraws} 次重抽内未能抽到两个不同的邻居"
            )
        w = graph.random_neighbor(v, rng)

    return graph.has_edge(u, w)


def _check_trials(trials: int) -> None:
    if isinstance(trials, bool) or not isinstance(trials, numbers.Integral) or trials <= 0:
        raise ValueError(f"试验次数必须是正整数，当前值: {trials!r}")


def _resolve_rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    if rng is None:
        return np.random.default_rng(get_config().seed)
    return rng


def _resolve_max_redraws(max_redraws: Optional[int]) -> int:
    if max_redraws is None:
        return get_config().max_redraws
    if max_redraws < 1:
        raise ValueError(f"最大重抽次数必须 >= 1，当前值: {max_redraws}")
    return max_redraws
