"""
聚类系数引擎的异常类型
"""


class ClusteringError(Exception):
    """聚类系数引擎异常基类"""


class UndefinedStatisticError(ClusteringError, ValueError):
    """
    统计量无定义

    例如图中没有度数 >= 2 的节点，或三元组总质量为 0。
    与数值结果 0.0 区分：0.0 是合法的低聚类结果。
    """


class SamplingError(ClusteringError, RuntimeError):
    """随机抽样在允许的重抽次数内未能完成"""
