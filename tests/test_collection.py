from __future__ import annotations

import pytest

from pipewright.collection import Collection
from pipewright.dag import ROOT_ID
from pipewright.dsl import step
from pipewright.errors import AmbiguousProviderError, CycleError, NoPipelineProviderError, NotFoundError
from pipewright.model import git_tag_event
from pipewright.pipeline import Pipeline
from pipewright.state.argument import BUILD_ID, CLIENT_PROVIDED_ARGUMENTS, secret_argument, string_argument

ARTIFACT = string_argument("artifact")


def _pipeline(name, pipeline_id, *steps):
    p = Pipeline(name, pipeline_id)
    p.add_steps(*[s.with_id(pipeline_id * 100 + i) for i, s in enumerate(steps, start=1)])
    return p


def _parents(c, pipeline_id):
    return sorted(n.id for n in c.graph.parents(pipeline_id))


def test_pipelines_ordered_by_arguments():
    c = Collection()
    build = _pipeline("build", 1, step("compile", provides=[ARTIFACT])).provides(ARTIFACT)
    deploy = _pipeline("deploy", 2, step("ship", requires=[ARTIFACT])).requires(ARTIFACT)
    c.add_pipelines(deploy, build)
    c.build_edges(*CLIENT_PROVIDED_ARGUMENTS)
    assert _parents(c, 1) == [ROOT_ID]
    assert _parents(c, 2) == [1]


def test_missing_pipeline_provider():
    c = Collection()
    c.add_pipelines(_pipeline("deploy", 2, step("ship")).requires(ARTIFACT))
    with pytest.raises(NoPipelineProviderError) as exc:
        c.build_edges()
    assert exc.value.pipeline == "deploy"


def test_secret_pipeline_requirement_is_skipped():
    c = Collection()
    c.add_pipelines(_pipeline("deploy", 2, step("ship")).requires(secret_argument("token")))
    c.build_edges()
    assert _parents(c, 2) == [ROOT_ID]


def test_two_pipelines_providing_the_same_argument():
    c = Collection()
    c.add_pipelines(_pipeline("one", 1, step("a")).provides(ARTIFACT))
    with pytest.raises(AmbiguousProviderError):
        c.add_pipelines(_pipeline("two", 2, step("b")).provides(ARTIFACT))


def test_after_adds_edges():
    c = Collection()
    first = _pipeline("first", 1, step("a"))
    second = _pipeline("second", 2, step("b")).after(first)
    c.add_pipelines(first, second)
    c.build_edges()
    assert _parents(c, 2) == [1]


def test_pipeline_cycle():
    c = Collection()
    first = _pipeline("first", 1, step("a"))
    second = _pipeline("second", 2, step("b"))
    first.after(second)
    second.after(first)
    c.add_pipelines(first, second)
    with pytest.raises(CycleError):
        c.build_edges()


def test_build_edges_reaches_every_pipeline():
    c = Collection()
    c.add_pipelines(_pipeline("p", 1, step("needs-build-id", requires=[BUILD_ID])))
    c.build_edges(*CLIENT_PROVIDED_ARGUMENTS)
    p = c.pipeline(1)
    assert [n.id for n in p.graph.parents(101)] == [ROOT_ID]


def test_lookups():
    c = Collection()
    c.add_pipelines(
        _pipeline("build", 1, step("compile"), step("lint")),
        _pipeline("release", 2, step("compile")).when(git_tag_event()),
    )
    assert c.pipeline(2).name == "release"
    assert c.by_id(102).name == "lint"
    assert [s.id for s in c.by_name("compile")] == [101, 201]
    assert c.pipeline_of(201).name == "release"
    assert c.pipeline_of(999) is None
    assert [p.name for p in c.pipelines_by_name(["release", "build"])] == ["release", "build"]
    assert [p.name for p in c.pipelines_by_event("git-tag")] == ["release"]
    assert [p.name for p in c.pipelines_by_event("git-commit")] == ["build"]
    with pytest.raises(NotFoundError):
        c.pipelines_by_name(["nope"])
    with pytest.raises(NotFoundError):
        c.by_id(999)
    with pytest.raises(NotFoundError):
        c.pipeline(ROOT_ID)


def test_add_steps_and_events():
    c = Collection()
    c.add_pipelines(Pipeline("p", 1))
    c.add_steps(1, step("late").with_id(5))
    c.add_events(1, git_tag_event())
    assert [s.name for s in c.pipeline(1).steps()] == ["late"]
    assert [e.name for e in c.pipeline(1).events] == ["git-commit", "git-tag"]
