"""
按节点编号索引的系数数组

数组长度为 upper_node_id_bound，不存在的编号处保持 0.0，
但这些位置不是有效结果：按编号读取不存在的节点会抛出 KeyError。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class NodeCoefficients:
    """带存在性掩码的节点系数数组"""

    values: np.ndarray
    """float64 数组，长度为 upper_node_id_bound"""

    exists: np.ndarray
    """bool 数组，exists[u] 表示节点 u 是否存在"""

    def __post_init__(self) -> None:
        if self.values.shape != self.exists.shape:
            raise ValueError(
                f"values 与 exists 长度不一致: {self.values.shape} != {self.exists.shape}"
            )

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, u: object) -> bool:
        return isinstance(u, (int, np.integer)) and 0 <= u < len(self.values) and bool(self.exists[u])

    def __getitem__(self, u: int) -> float:
        if u not in self:
            raise KeyError(f"节点不存在: {u}")
        return float(self.values[u])

    def __iter__(self) -> Iterator[int]:
        """遍历存在的节点编号"""
        return iter(self.nodes())

    def nodes(self) -> List[int]:
        return np.flatnonzero(self.exists).tolist()

    def items(self) -> Iterator[Tuple[int, float]]:
        for u in self.nodes():
            yield u, float(self.values[u])

    def to_list(self) -> List[float]:
        """完整数组（不存在的编号处为 0.0）"""
        return self.values.tolist()

    def to_dict(self, labels: Optional[Sequence[Hashable]] = None) -> Dict[Hashable, float]:
        """
        转换为 {节点: 系数} 字典，只包含存在的节点

        Args:
            labels: 节点编号 -> 标签的映射，为None时使用编号本身
        """
        if labels is None:
            return dict(self.items())
        return {labels[u]: value for u, value in self.items()}
