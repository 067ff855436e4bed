import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy import event
from sqlmodel import Session, select

from app.agent import orchestrator
from app.agent.base import PersonaAgent
from app.agent.llm_client import GenerationError
from app.agent.orchestrator import run_agent_pipeline, run_multi_agents
from app.agent.registry import AGENTS
from app.core.config import settings
from app.crud import create_project
from app.models import Content, Project, ProjectCreate, ProjectStatus
from app.tests.utils import FakeLLM, agent_definition, db_down, make_agents


def _new_project(engine, url: str = "https://example.com/post") -> int:
    with Session(engine) as session:
        return create_project(session=session, project_in=ProjectCreate(url=url)).id


def _status(engine, project_id: int) -> ProjectStatus:
    with Session(engine) as session:
        return session.get(Project, project_id).status


def _contents(engine, project_id: int) -> list[Content]:
    with Session(engine) as session:
        return list(session.exec(select(Content).where(Content.project_id == project_id)).all())


@pytest.mark.asyncio
async def test_every_agent_writes_its_ideas_and_project_is_done(engine):
    project_id = _new_project(engine)

    report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(FakeLLM()), engine=engine)

    rows = _contents(engine, project_id)
    assert sorted(row.agent_name for row in rows) == sorted(agent.name for agent in AGENTS)
    assert {(row.hook, row.idea, row.source) for row in rows} == {("H", "I", "S")}
    assert report.final_status == ProjectStatus.DONE
    assert report.ideas_written == len(AGENTS)
    assert report.failed == []
    assert _status(engine, project_id) == ProjectStatus.DONE


@pytest.mark.asyncio
async def test_malformed_answer_only_affects_that_agent(engine):
    project_id = _new_project(engine)
    llm = FakeLLM(by_role={"Humorist": "this is not json"})

    report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(llm), engine=engine)

    names = {row.agent_name for row in _contents(engine, project_id)}
    assert "Divertir" not in names
    assert names == {"Polariser", "Expertise", "Vente"}
    assert report.failed == ["Divertir"]
    assert _status(engine, project_id) == ProjectStatus.DONE


@pytest.mark.asyncio
async def test_project_is_done_even_when_every_agent_fails(engine):
    project_id = _new_project(engine)
    llm = FakeLLM(default='{"ideas": [{"hook": "H"}]}')

    report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(llm), engine=engine)

    assert _contents(engine, project_id) == []
    assert report.succeeded == []
    assert report.final_status == ProjectStatus.DONE
    assert _status(engine, project_id) == ProjectStatus.DONE


@pytest.mark.asyncio
async def test_agent_may_contribute_many_or_zero_ideas(engine):
    project_id = _new_project(engine)
    many = '{"ideas": [' + ",".join(
        f'{{"hook": "h{i}", "content": "c{i}", "source": "s{i}"}}' for i in range(3)
    ) + "]}"
    llm = FakeLLM(default='{"ideas": []}', by_role={"Copywriter": many})

    report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(llm), engine=engine)

    rows = _contents(engine, project_id)
    assert len(rows) == 3
    assert {row.agent_name for row in rows} == {"Vente"}
    assert report.failed == []


@pytest.mark.asyncio
async def test_status_is_written_only_after_all_agents_settle(engine):
    project_id = _new_project(engine)
    release = asyncio.Event()

    class SlowLLM(FakeLLM):
        async def generate_text(self, system_prompt, user_prompt):
            if "ROLE: Technical Expert." in user_prompt:
                await release.wait()
            return await super().generate_text(system_prompt, user_prompt)

    task = asyncio.create_task(
        run_multi_agents(project_id, "X", "Y", agents=make_agents(SlowLLM()), engine=engine)
    )
    for _ in range(50):
        await asyncio.sleep(0.01)
        if len(_contents(engine, project_id)) == len(AGENTS) - 1:
            break

    assert len(_contents(engine, project_id)) == len(AGENTS) - 1
    assert _status(engine, project_id) == ProjectStatus.PENDING

    release.set()
    report = await task

    assert report.final_status == ProjectStatus.DONE
    assert _status(engine, project_id) == ProjectStatus.DONE
    assert len(_contents(engine, project_id)) == len(AGENTS)


@pytest.mark.asyncio
async def test_unexpected_agent_crash_is_absorbed(engine):
    project_id = _new_project(engine)
    llm = FakeLLM(by_role={"Provocateur": RuntimeError("boom")})

    report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(llm), engine=engine)

    assert "Polariser" in report.failed
    assert _status(engine, project_id) == ProjectStatus.DONE


@pytest.mark.asyncio
async def test_storage_failure_during_writes_is_absorbed(engine):
    project_id = _new_project(engine)
    agent = PersonaAgent(agent_definition("Expertise"), llm=FakeLLM())

    with patch("app.agent.orchestrator._store_ideas", side_effect=db_down()):
        written = await run_agent_pipeline(agent, project_id, "X", "Y", engine=engine)

    assert written is None
    assert _contents(engine, project_id) == []


@pytest.mark.asyncio
async def test_provider_error_is_absorbed(engine):
    project_id = _new_project(engine)
    llm = FakeLLM(by_role={"Copywriter": GenerationError("rate limited")})

    report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(llm), engine=engine)

    assert report.failed == ["Vente"]
    assert report.ideas_written == len(AGENTS) - 1


@pytest.mark.asyncio
async def test_status_update_is_retried(engine):
    project_id = _new_project(engine)
    real_update = orchestrator._set_project_status
    calls = []

    def flaky(db_engine, pid, status):
        calls.append(status)
        if len(calls) == 1:
            raise db_down()
        real_update(db_engine, pid, status)

    with patch("app.agent.orchestrator._set_project_status", side_effect=flaky):
        report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(FakeLLM()), engine=engine)

    assert calls == [ProjectStatus.DONE, ProjectStatus.DONE]
    assert report.final_status == ProjectStatus.DONE
    assert _status(engine, project_id) == ProjectStatus.DONE


@pytest.mark.asyncio
async def test_project_is_stalled_when_status_retries_are_exhausted(engine, monkeypatch):
    monkeypatch.setattr(settings, "STATUS_UPDATE_ATTEMPTS", 2)
    project_id = _new_project(engine)
    real_update = orchestrator._set_project_status
    calls = []

    def done_always_fails(db_engine, pid, status):
        calls.append(status)
        if status == ProjectStatus.DONE:
            raise db_down()
        real_update(db_engine, pid, status)

    with patch("app.agent.orchestrator._set_project_status", side_effect=done_always_fails):
        report = await run_multi_agents(project_id, "X", "Y", agents=make_agents(FakeLLM()), engine=engine)

    assert calls == [ProjectStatus.DONE, ProjectStatus.DONE, ProjectStatus.STALLED]
    assert report.final_status == ProjectStatus.STALLED
    assert _status(engine, project_id) == ProjectStatus.STALLED


@pytest.mark.asyncio
async def test_concurrent_projects_do_not_mix_contents(engine):
    first = _new_project(engine, "https://example.com/a")
    second = _new_project(engine, "https://example.com/b")
    first_llm = FakeLLM(default='{"ideas":[{"hook":"A","content":"a","source":"sa"}]}')
    second_llm = FakeLLM(default='{"ideas":[{"hook":"B","content":"b","source":"sb"}]}')

    await asyncio.gather(
        run_multi_agents(first, "X", "Y", agents=make_agents(first_llm), engine=engine),
        run_multi_agents(second, "X", "Y", agents=make_agents(second_llm), engine=engine),
    )

    assert {row.hook for row in _contents(engine, first)} == {"A"}
    assert {row.hook for row in _contents(engine, second)} == {"B"}
    assert _status(engine, first) == _status(engine, second) == ProjectStatus.DONE


@pytest.mark.asyncio
async def test_failed_write_leaves_no_partial_rows_for_that_agent(engine):
    project_id = _new_project(engine)
    two_ideas = (
        '{"ideas": [{"hook": "h1", "content": "c1", "source": "s1"},'
        ' {"hook": "h2", "content": "c2", "source": "s2"}]}'
    )
    agent = PersonaAgent(agent_definition("Expertise"), llm=FakeLLM(default=two_ideas))
    inserted = []

    def fail_second_insert(mapper, connection, target):
        inserted.append(target.hook)
        if len(inserted) == 2:
            raise db_down()

    event.listen(Content, "before_insert", fail_second_insert)
    try:
        written = await run_agent_pipeline(agent, project_id, "X", "Y", engine=engine)
    finally:
        event.remove(Content, "before_insert", fail_second_insert)

    assert inserted == ["h1", "h2"]
    assert written is None
    assert _contents(engine, project_id) == []
