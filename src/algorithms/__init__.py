"""
图算法模块

提供聚类系数引擎的核心算法：
1. 精确局部聚类系数及其平均值
2. 精确全局聚类系数（传递性）
3. 两种蒙特卡洛近似估计，以及按三元组质量加权的节点抽样器
"""

from src.algorithms.clustering_coefficient import (
    approx_avg_local,
    approx_global,
    avg_local,
    exact_global,
    exact_local,
)
from src.algorithms.errors import ClusteringError, SamplingError, UndefinedStatisticError
from src.algorithms.weighted_sampler import WeightedVertexSampler, triple_mass

__all__ = [
    "ClusteringError",
    "SamplingError",
    "UndefinedStatisticError",
    "WeightedVertexSampler",
    "approx_avg_local",
    "approx_global",
    "avg_local",
    "exact_global",
    "exact_local",
    "triple_mass",
]
