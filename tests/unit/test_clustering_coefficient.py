"""
聚类系数算法单元测试
"""

import math

import networkx as nx
import numpy as np
import pytest

from src.algorithms.clustering_coefficient import (
    approx_avg_local,
    approx_global,
    avg_local,
    exact_global,
    exact_local,
)
from src.algorithms.errors import SamplingError, UndefinedStatisticError
from src.models.graph import IndexedGraph


def _graph(nx_graph):
    return IndexedGraph.from_networkx(nx_graph)


def test_triangle():
    """测试三角形：所有系数都为1"""
    graph = _graph(nx.complete_graph(3))

    assert exact_local(graph, max_workers=1).to_list() == [1.0, 1.0, 1.0]
    assert avg_local(graph) == 1.0
    assert exact_global(graph) == 1.0


@pytest.mark.parametrize("n", [3, 4, 5, 8])
def test_complete_graph(n):
    """测试完全图"""
    graph = _graph(nx.complete_graph(n))

    local = exact_local(graph)
    assert all(local[u] == pytest.approx(1.0) for u in graph.nodes())
    assert exact_global(graph) == pytest.approx(1.0)


@pytest.mark.parametrize("n", [4, 5, 10])
def test_cycle_has_no_triangles(n):
    """测试长度 >= 4 的环：没有三角形"""
    graph = _graph(nx.cycle_graph(n))

    assert exact_global(graph) == 0.0
    assert all(value == 0.0 for value in exact_local(graph).to_list())
    assert avg_local(graph) == 0.0


def test_star():
    """测试5节点星形图：中心节点系数为0，叶子度数为1"""
    graph = _graph(nx.star_graph(4))

    local = exact_local(graph)
    assert local.to_list() == [0.0] * 5
    assert exact_global(graph) == 0.0
    # 只有中心节点参与平均
    assert avg_local(graph) == 0.0


def test_local_coefficients_in_unit_interval():
    """测试局部系数在 [0, 1] 内，度数 < 2 的节点为0"""
    nx_graph = nx.gnp_random_graph(80, 0.1, seed=7)
    nx_graph.add_edge(0, 79)
    nx_graph.add_node(80)  # 孤立节点
    graph = _graph(nx_graph)

    local = exact_local(graph)
    for u, value in local.items():
        assert 0.0 <= value <= 1.0
        if graph.degree(u) < 2:
            assert value == 0.0


def test_exact_local_matches_networkx():
    """测试与 networkx 的局部聚类系数一致"""
    nx_graph = nx.karate_club_graph()
    graph = _graph(nx_graph)

    local = exact_local(graph)
    expected = nx.clustering(nx_graph)
    for u, value in local.items():
        assert value == pytest.approx(expected[graph.labels[u]])


def test_exact_global_matches_transitivity():
    """测试与 networkx 的传递性一致"""
    nx_graph = nx.gnp_random_graph(60, 0.2, seed=3)
    graph = _graph(nx_graph)

    assert exact_global(graph) == pytest.approx(nx.transitivity(nx_graph))


def test_exact_results_independent_of_schedule():
    """测试精确结果与线程数、调用次数无关"""
    graph = _graph(nx.powerlaw_cluster_graph(200, 3, 0.4, seed=11))

    reference_global = exact_global(graph, max_workers=1)
    reference_local = exact_local(graph, max_workers=1).values
    for workers in (1, 2, 3, 8):
        assert exact_global(graph, max_workers=workers) == reference_global
        np.testing.assert_array_equal(exact_local(graph, max_workers=workers).values, reference_local)


def test_sparse_node_ids():
    """测试删除节点后编号存在空洞"""
    graph = _graph(nx.complete_graph(6))
    graph.add_edge(0, 1)
    graph.remove_node(2)
    graph.remove_node(5)

    local = exact_local(graph)
    assert len(local) == 6
    assert 2 not in local
    with pytest.raises(KeyError):
        local[5]
    assert local.values[2] == 0.0
    assert sorted(local.nodes()) == [0, 1, 3, 4]
    assert all(local[u] == 1.0 for u in local)
    assert exact_global(graph) == 1.0
    assert avg_local(graph) == 1.0


def test_self_loops_and_parallel_edges_are_ignored():
    """测试自环与重复边不影响结果"""
    multi = nx.MultiGraph()
    multi.add_edges_from([(0, 1), (1, 2), (2, 0), (0, 1), (1, 2), (0, 0), (2, 2), (2, 3), (3, 2)])
    graph = _graph(multi)

    clean = _graph(nx.Graph([(0, 1), (1, 2), (2, 0), (2, 3)]))

    assert graph.dropped_self_loops == 2
    assert graph.merged_parallel_edges == 3
    assert exact_local(graph).to_list() == exact_local(clean).to_list()
    assert exact_global(graph) == exact_global(clean)
    assert all(0.0 <= value <= 1.0 for value in exact_local(graph).to_list())


def test_degenerate_graphs_return_nan():
    """测试没有度数 >= 2 节点的图：统计量无定义"""
    graph = _graph(nx.path_graph(2))

    assert exact_local(graph).to_list() == [0.0, 0.0]
    assert math.isnan(avg_local(graph))
    assert math.isnan(exact_global(graph))


def test_empty_graph():
    """测试空图"""
    graph = IndexedGraph()

    assert len(exact_local(graph)) == 0
    assert math.isnan(avg_local(graph))
    assert math.isnan(exact_global(graph))
    with pytest.raises(UndefinedStatisticError):
        approx_avg_local(graph, 10, rng=np.random.default_rng(0))
    with pytest.raises(UndefinedStatisticError):
        approx_global(graph, 10, rng=np.random.default_rng(0))


def test_approx_undefined_without_wedges():
    """测试近似算法在没有度数 >= 2 节点时报错"""
    graph = _graph(nx.path_graph(2))
    rng = np.random.default_rng(0)

    with pytest.raises(UndefinedStatisticError):
        approx_avg_local(graph, 100, rng=rng)
    with pytest.raises(UndefinedStatisticError):
        approx_global(graph, 100, rng=rng)


@pytest.mark.parametrize("trials", [0, -3, 2.5, True, "10"])
def test_invalid_trials(trials):
    """测试无效的试验次数"""
    graph = _graph(nx.complete_graph(3))

    with pytest.raises(ValueError):
        approx_avg_local(graph, trials, rng=np.random.default_rng(0))
    with pytest.raises(ValueError):
        approx_global(graph, trials, rng=np.random.default_rng(0))


def test_degree_two_center_terminates():
    """测试度数恰为2的节点能抽到两个不同邻居"""
    graph = _graph(nx.path_graph(3))
    rng = np.random.default_rng(5)

    assert approx_avg_local(graph, 500, rng=rng) == 0.0
    assert approx_global(graph, 500, rng=rng) == 0.0


def test_triangle_always_hits():
    """测试三角形上每次试验都命中"""
    graph = _graph(nx.complete_graph(3))
    rng = np.random.default_rng(1)

    assert approx_avg_local(graph, 200, rng=rng) == 1.0
    assert approx_global(graph, 200, rng=rng) == 1.0


def test_redraw_guard(monkeypatch):
    """测试邻居重抽次数上限"""
    graph = _graph(nx.complete_graph(3))
    monkeypatch.setattr(graph, "random_neighbor", lambda u, rng: (u + 1) % 3)

    with pytest.raises(SamplingError):
        approx_avg_local(graph, 10, rng=np.random.default_rng(0), max_redraws=50)
    with pytest.raises(SamplingError):
        approx_global(graph, 10, rng=np.random.default_rng(0), max_redraws=50)


def test_same_seed_is_reproducible():
    """测试相同种子得到相同估计"""
    graph = _graph(nx.karate_club_graph())

    first = approx_avg_local(graph, 2000, rng=np.random.default_rng(42))
    second = approx_avg_local(graph, 2000, rng=np.random.default_rng(42))
    assert first == second

    first = approx_global(graph, 2000, rng=np.random.default_rng(42))
    second = approx_global(graph, 2000, rng=np.random.default_rng(42))
    assert first == second


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_approx_avg_local_converges(seed):
    """测试近似平均局部聚类系数收敛到精确值"""
    graph = _graph(nx.karate_club_graph())

    estimate = approx_avg_local(graph, 100000, rng=np.random.default_rng(seed))
    assert abs(estimate - avg_local(graph)) < 0.01


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_approx_global_converges(seed):
    """测试近似全局聚类系数收敛到传递性"""
    graph = _graph(nx.karate_club_graph())

    estimate = approx_global(graph, 100000, rng=np.random.default_rng(seed))
    assert abs(estimate - exact_global(graph)) < 0.01


def test_approx_global_uses_triple_weighting():
    """
    测试加权方式：k 个三角形共享一个中心节点的风车图中，
    非中心节点的局部系数为1，中心节点为 1/(2k-1)，
    平均局部聚类系数接近1，而传递性为 3/(2k+1)
    """
    k = 10
    # windmill_graph(团的个数, 团的大小)
    graph = _graph(nx.windmill_graph(k, 3))
    assert graph.number_of_nodes() == 2 * k + 1
    assert graph.degree(0) == 2 * k
    assert all(graph.degree(u) == 2 for u in range(1, 2 * k + 1))
    assert exact_local(graph)[0] == pytest.approx(1 / (2 * k - 1))

    transitivity = exact_global(graph)
    average = avg_local(graph)
    assert transitivity == pytest.approx(3 / (2 * k + 1))
    assert average == pytest.approx((2 * k + 1 / (2 * k - 1)) / (2 * k + 1))

    estimate = approx_global(graph, 100000, rng=np.random.default_rng(8))
    assert abs(estimate - transitivity) < 0.01
    assert abs(estimate - average) > 0.5

    uniform_estimate = approx_avg_local(graph, 100000, rng=np.random.default_rng(8))
    assert abs(uniform_estimate - average) < 0.01
