"""
聚类系数报告

将任意 networkx 图（actor-actor 协作图、多重图、有向图）折叠为简单无向图，
计算精确的局部/平均/全局聚类系数，并可选地给出两种蒙特卡洛近似值，
结果整理为可直接导出为 JSON 的字典。
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

import networkx as nx
import numpy as np

from src.algorithms.clustering_coefficient import (
    approx_avg_local,
    approx_global,
    avg_local,
    exact_global,
    exact_local,
)
from src.algorithms.errors import UndefinedStatisticError
from src.models.graph import IndexedGraph
from src.utils.config import get_config
from src.utils.logger import get_logger

logger = get_logger()


def compute_clustering_coefficient(
    graph: nx.Graph,
    approximate: bool = False,
    trials: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    weight: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, Any]:
    """
    计算聚类系数，衡量社区紧密度

    Args:
        graph: networkx 图，节点标签任意
        approximate: 是否计算两种蒙特卡洛近似值
        trials: 近似算法的试验次数，为None时使用配置的默认值
        rng: 近似算法使用的随机数生成器
        weight: 边权重属性名（只影响 total_edge_weight）
        max_workers: 精确算法的线程数

    Returns:
        包含全局聚类系数、局部聚类系数分布等指标的字典；
        无定义的统计量记为 None
    """
    if approximate and trials is None:
        trials = get_config().default_trials

    indexed = IndexedGraph.from_networkx(graph, weight=weight)
    logger.info(
        f"图准备完成: 节点数={indexed.number_of_nodes()}, 边数={indexed.number_of_edges()}"
    )

    result: Dict[str, Any] = {
        "global_clustering_coefficient": None,
        "local_clustering_coefficients": {},
        "average_local_clustering": None,
        "approx_average_local_clustering": None,
        "approx_global_clustering_coefficient": None,
        "trials": trials if approximate else None,
        "graph_nodes": indexed.number_of_nodes(),
        "graph_edges": indexed.number_of_edges(),
        "total_edge_weight": indexed.total_edge_weight(),
        "dropped_self_loops": indexed.dropped_self_loops,
        "merged_parallel_edges": indexed.merged_parallel_edges,
    }

    if indexed.number_of_nodes() == 0:
        logger.warning("图中没有节点，返回空的聚类系数结果")
        return result

    logger.info("正在计算局部聚类系数...")
    local = exact_local(indexed, max_workers=max_workers)
    result["local_clustering_coefficients"] = {
        str(label): value for label, value in local.to_dict(indexed.labels).items()
    }

    logger.info("正在计算全局聚类系数...")
    result["global_clustering_coefficient"] = _finite_or_none(exact_global(indexed, max_workers=max_workers))
    result["average_local_clustering"] = _finite_or_none(avg_local(indexed, max_workers=max_workers))

    if approximate:
        if rng is None:
            rng = np.random.default_rng(get_config().seed)
        logger.info(f"正在计算近似聚类系数: 试验次数={trials}")
        try:
            result["approx_average_local_clustering"] = approx_avg_local(indexed, trials, rng=rng)
            result["approx_global_clustering_coefficient"] = approx_global(indexed, trials, rng=rng)
        except UndefinedStatisticError as e:
            logger.warning(f"近似聚类系数无定义: {e}")

    logger.info(
        f"聚类系数计算完成: global={result['global_clustering_coefficient']}, "
        f"average_local={result['average_local_clustering']}"
    )
    return result


def _finite_or_none(value: float) -> Optional[float]:
    if math.isnan(value):
        return None
    return float(value)
