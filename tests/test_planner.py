"""Tests for the execution planner."""

import asyncio

import pytest

from okit.planner import build_plan, expand_for_install, get_all_dependencies, render_plan
from okit.registry import Registry, Step


def _plan(steps, action, registry, providers=None):
    return asyncio.run(build_plan(steps, action, registry, providers or []))


def _names(registry, *names):
    return [registry.get(n) for n in names]


def _chain_registry(depth: int) -> Registry:
    steps = [Step(name="tool0", install="i0")]
    for i in range(1, depth + 1):
        steps.append(Step(name=f"tool{i}", install=f"i{i}", dependencies=[f"tool{i - 1}"]))
    return Registry(steps=steps)


class TestInstallPlan:
    def test_pulls_in_transitive_dependencies(self, sample_registry):
        plan = _plan(_names(sample_registry, "Claude Code"), "install", sample_registry)

        assert plan.names == ["Homebrew", "Node.js", "Claude Code"]
        assert plan.added_deps == {"Homebrew", "Node.js"}
        assert plan.missing_deps == {}
        assert plan.cycle is None

    def test_explicitly_selected_dependency_is_not_marked_added(self, sample_registry):
        plan = _plan(
            _names(sample_registry, "Claude Code", "Homebrew"), "install", sample_registry
        )
        assert plan.names == ["Homebrew", "Node.js", "Claude Code"]
        assert plan.added_deps == {"Node.js"}

    @pytest.mark.parametrize("depth", [1, 3, 6])
    def test_chain_of_any_depth(self, depth):
        registry = _chain_registry(depth)
        leaf = registry.get(f"tool{depth}")

        plan = _plan([leaf], "install", registry)

        assert plan.names == [f"tool{i}" for i in range(depth + 1)]
        assert plan.added_deps == {f"tool{i}" for i in range(depth)}

    def test_every_edge_is_respected(self, sample_registry):
        plan = _plan(
            _names(sample_registry, "iTerm2", "Claude Code"), "install", sample_registry
        )
        position = {name: i for i, name in enumerate(plan.names)}
        assert plan.edges
        for source, targets in plan.edges.items():
            for target in targets:
                assert position[source] < position[target]

    def test_missing_dependency_is_reported_without_phantom_node(self):
        registry = Registry(
            steps=[Step(name="Whisper", install="pipx install openai-whisper", dependencies=["pipx"])]
        )
        plan = _plan([registry.get("Whisper")], "install", registry)

        assert plan.names == ["Whisper"]
        assert plan.missing_deps == {"Whisper": ["pipx"]}
        assert "pipx" not in plan.edges

    def test_duplicate_selection_is_one_node(self, sample_registry):
        step = sample_registry.get("Homebrew")
        plan = _plan([step, step], "install", sample_registry)
        assert plan.names == ["Homebrew"]

    def test_cycle_falls_back_to_registry_order(self):
        registry = Registry(
            steps=[
                Step(name="A", install="a", dependencies=["B"]),
                Step(name="B", install="b", dependencies=["C"]),
                Step(name="C", install="c", dependencies=["A"]),
            ]
        )
        plan = _plan([registry.get("A")], "install", registry)

        assert plan.names == ["A", "B", "C"]
        assert plan.cycle == ["A", "B", "C"]
        assert plan.has_cycle()

    def test_is_deterministic(self, sample_registry):
        selection = _names(sample_registry, "iTerm2", "Claude Code")
        first = _plan(selection, "install", sample_registry)
        second = _plan(selection, "install", sample_registry)
        assert first.names == second.names

    def test_providers_not_consulted(self, sample_registry, fake_provider_factory):
        provider = fake_provider_factory("brew", owned={"Node.js": "node"})
        _plan(_names(sample_registry, "Node.js"), "install", sample_registry, [provider])
        assert provider.queried == []


class TestUpgradePlan:
    def test_does_not_expand(self, sample_registry):
        plan = _plan(_names(sample_registry, "Claude Code"), "upgrade", sample_registry)

        assert plan.names == ["Claude Code"]
        assert plan.added_deps == set()
        assert plan.missing_deps == {"Claude Code": ["Node.js"]}

    def test_orders_selected_dependencies_first(self, sample_registry):
        plan = _plan(
            _names(sample_registry, "Claude Code", "Node.js"), "upgrade", sample_registry
        )
        assert plan.names == ["Node.js", "Claude Code"]


class TestUninstallPlan:
    def test_dependents_removed_first(self, sample_registry):
        plan = _plan(
            _names(sample_registry, "Node.js", "Claude Code"), "uninstall", sample_registry
        )
        assert plan.names == ["Claude Code", "Node.js"]

    def test_unselected_dependency_adds_no_edge(self, sample_registry):
        plan = _plan(
            _names(sample_registry, "Homebrew", "Claude Code"), "uninstall", sample_registry
        )

        assert plan.names == ["Claude Code", "Homebrew"]
        assert plan.missing_deps == {}
        assert plan.added_deps == set()
        assert "Node.js" not in plan.names
        assert all("Node.js" not in targets for targets in plan.edges.values())

    def test_external_dependents_are_advisory(self, sample_registry, fake_provider_factory):
        provider = fake_provider_factory(
            "brew", owned={"Node.js": "node"}, dependents={"node": ["foo"]}
        )
        plan = _plan(_names(sample_registry, "Node.js"), "uninstall", sample_registry, [provider])

        assert plan.external_dependents == {"Node.js": ["foo"]}
        assert plan.names == ["Node.js"]

    def test_non_system_provider_external_dependents_suppressed(
        self, sample_registry, fake_provider_factory
    ):
        provider = fake_provider_factory(
            "npm",
            owned={"Claude Code": "@anthropic-ai/claude-code"},
            dependents={"@anthropic-ai/claude-code": ["some-plugin"]},
        )
        plan = _plan(
            _names(sample_registry, "Claude Code"), "uninstall", sample_registry, [provider]
        )
        assert provider.queried == ["@anthropic-ai/claude-code"]
        assert plan.external_dependents == {}

    def test_internal_dependents_become_edges(self, sample_registry, fake_provider_factory):
        provider = fake_provider_factory(
            "brew",
            owned={"Node.js": "node", "iTerm2": "iterm2"},
            dependents={"node": ["iterm2", "yarn"]},
        )
        plan = _plan(
            _names(sample_registry, "Node.js", "iTerm2"), "uninstall", sample_registry, [provider]
        )

        assert plan.names == ["iTerm2", "Node.js"]
        assert plan.edges["iTerm2"] == ["Node.js"]
        assert plan.external_dependents == {"Node.js": ["yarn"]}

    def test_failing_provider_means_no_dependents(self, sample_registry, fake_provider_factory):
        provider = fake_provider_factory("brew", owned={"Node.js": "node"})

        async def boom(info):
            raise RuntimeError("brew exploded")

        provider.reverse_dependents = boom
        plan = _plan(_names(sample_registry, "Node.js"), "uninstall", sample_registry, [provider])

        assert plan.names == ["Node.js"]
        assert plan.external_dependents == {}


def test_get_all_dependencies_is_prerequisite_first(sample_registry):
    deps = get_all_dependencies(sample_registry.get("Claude Code"), sample_registry)
    assert [d.name for d in deps] == ["Homebrew", "Node.js"]


def test_get_all_dependencies_survives_cycles():
    registry = Registry(
        steps=[
            Step(name="A", install="a", dependencies=["B"]),
            Step(name="B", install="b", dependencies=["A"]),
        ]
    )
    deps = get_all_dependencies(registry.get("A"), registry)
    assert [d.name for d in deps] == ["A", "B"]


def test_expand_for_install_keeps_unregistered_selection(sample_registry):
    custom = Step(name="Custom", install="echo custom", dependencies=["Homebrew"])
    expanded, added = expand_for_install([custom], sample_registry)
    assert [s.name for s in expanded] == ["Homebrew", "Custom"]
    assert added == {"Homebrew"}


def test_render_plan_lists_advisories(sample_registry, fake_provider_factory):
    provider = fake_provider_factory("brew", owned={"Node.js": "node"}, dependents={"node": ["foo"]})
    plan = _plan(_names(sample_registry, "Node.js"), "uninstall", sample_registry, [provider])
    plan.missing_deps = {"Node.js": ["Ghost"]}

    rendered = render_plan(plan)

    assert "Execution plan (uninstall):" in rendered
    assert " 1. Node.js" in rendered
    assert "Node.js: foo" in rendered
    assert "Node.js: Ghost" in rendered


def test_render_plan_marks_added_dependencies(sample_registry):
    plan = _plan(_names(sample_registry, "Node.js"), "install", sample_registry)
    rendered = render_plan(plan)
    assert " 1. Homebrew  (dependency)" in rendered
    assert " 2. Node.js\n" in rendered + "\n"
