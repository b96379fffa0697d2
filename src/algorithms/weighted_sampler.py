"""
按三元组质量加权的节点抽样器

节点 v 的权重为 deg(v)·(deg(v)-1)，即以 v 为中心的有序开三元组个数。
构造时按编号顺序计算前缀和 prefix，prefix[i] 为编号 <= i 的存在节点的权重之和；
不存在的编号权重为 0，沿用前一个累计值，因此 prefix 单调不减，最后一项等于总质量。

抽样时在 [0, total_mass) 中均匀抽取整数 r，二分查找第一个 prefix >= r + 1 的位置。
节点 i 恰好拥有 prefix[i-1] .. prefix[i]-1 这 w(i) 个取值，权重为 0 的节点不会被抽中。
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from src.algorithms.errors import UndefinedStatisticError
from src.models.graph import IndexedGraph
from src.utils.logger import get_logger

logger = get_logger()


def triple_mass(degree: int) -> int:
    """以度数为 degree 的节点为中心的有序开三元组个数"""
    return degree * (degree - 1)


class WeightedVertexSampler:
    """
    按 deg(v)·(deg(v)-1) 加权抽取节点
    """

    def __init__(self, graph: IndexedGraph) -> None:
        bound = graph.upper_node_id_bound()
        weights = np.zeros(bound, dtype=np.int64)
        for v in graph.nodes():
            weights[v] = triple_mass(graph.degree(v))

        self.prefix: np.ndarray = np.cumsum(weights, dtype=np.int64)
        self.total_mass: int = int(self.prefix[-1]) if bound else 0

        logger.debug(f"加权抽样器构建完成: 编号上界={bound}, 总质量={self.total_mass}")

        if self.total_mass == 0:
            raise UndefinedStatisticError("图中没有度数 >= 2 的节点，三元组总质量为0，无法加权抽样")

    def locate(self, r: Union[int, np.ndarray]) -> Union[int, np.ndarray]:
        """
        将 [0, total_mass) 中的整数映射到拥有该取值的节点

        Args:
            r: 单个整数或整数数组

        Returns:
            节点编号（或编号数组）
        """
        r_arr = np.asarray(r, dtype=np.int64)
        if np.any(r_arr < 0) or np.any(r_arr >= self.total_mass):
            raise ValueError(f"抽样值必须在 [0, {self.total_mass}) 范围内")

        # 第一个累计权重 >= r + 1 的位置
        index = np.searchsorted(self.prefix, r_arr + 1, side="left")
        if index.ndim == 0:
            return int(index)
        return index

    def sample(self, rng: np.random.Generator, size: Optional[int] = None) -> Union[int, np.ndarray]:
        """
        抽取一个（或 size 个，独立有放回）节点

        Args:
            rng: 随机数生成器
            size: 抽样个数，为None时返回单个节点编号
        """
        r = rng.integers(0, self.total_mass, size=size)
        return self.locate(r)
