"""Integration tests for the Reviewflow HTTP API.

All tests use httpx.AsyncClient with ASGITransport against the app wired
to the in-memory test database.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from reviewflow.review.images import ImageJanitor


async def question_ids(client: AsyncClient, project_id: UUID) -> list[str]:
    response = await client.get(
        f"/projects/{project_id}/checklist-answers",
        params={"phase": "1", "role": "executor"},
    )
    assert response.status_code == 200
    return list(response.json().keys())


async def save(
    client: AsyncClient, project_id: UUID, role: str, answers: dict[str, Any]
) -> dict[str, Any]:
    response = await client.put(
        f"/projects/{project_id}/checklist-answers",
        json={"phase": 1, "role": role, "answers": answers},
        headers={"X-Actor-Id": f"{role}-1"},
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestHealth:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_ready(self, client: AsyncClient) -> None:
        response = await client.get("/health/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "connected"}

    @pytest.mark.asyncio
    async def test_correlation_id_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/health/", headers={"X-Correlation-ID": "req-42"})
        assert response.headers["X-Correlation-ID"] == "req-42"

        generated = await client.get("/health/")
        assert generated.headers["X-Correlation-ID"]


class TestTemplateApi:
    """Tests for template endpoints."""

    @pytest.mark.asyncio
    async def test_missing_template(self, client: AsyncClient) -> None:
        response = await client.get("/template")
        assert response.status_code == 424
        assert response.json()["error"] == "template_missing"

    @pytest.mark.asyncio
    async def test_put_and_get_template(self, client: AsyncClient) -> None:
        body = {
            "name": "Structural review",
            "phases": {"stage1": [{"text": "Drawings", "checkpoints": ["Scale shown?"]}]},
            "stage_names": {"stage1": "Design"},
            "defect_categories": [{"id": "doc", "name": "Documentation"}],
        }

        put = await client.put("/template", json=body, headers={"X-Actor-Id": "admin"})
        assert put.status_code == 200

        response = await client.get("/template")
        data = response.json()
        assert data["name"] == "Structural review"
        assert data["phases"]["stage1"][0]["name"] == "Drawings"
        assert data["phases"]["stage1"][0]["questions"][0]["text"] == "Scale shown?"
        assert data["modified_by"] == "admin"

    @pytest.mark.asyncio
    async def test_invalid_stage_key(self, client: AsyncClient) -> None:
        response = await client.put("/template", json={"phases": {"first": []}})
        assert response.status_code == 422


class TestProjectsApi:
    """Tests for project endpoints."""

    @pytest.mark.asyncio
    async def test_create_start_and_list_stages(self, client: AsyncClient, template: None) -> None:
        created = await client.post(
            "/projects/", json={"name": "Bridge deck"}, headers={"X-Actor-Id": "lead-1"}
        )
        assert created.status_code == 201
        project = created.json()
        assert project["status"] == "pending"
        assert project["created_by"] == "lead-1"

        started = await client.post(f"/projects/{project['id']}/start")
        assert started.status_code == 200
        assert started.json()["status"] == "in_progress"

        stages = (await client.get(f"/projects/{project['id']}/stages")).json()
        assert [(s["phase_number"], s["name"], s["status"]) for s in stages] == [
            (1, "Design", "in_progress"),
            (2, "Delivery", "pending"),
        ]

    @pytest.mark.asyncio
    async def test_get_missing_project(self, client: AsyncClient) -> None:
        response = await client.get(f"/projects/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_project_id(self, client: AsyncClient) -> None:
        response = await client.get("/projects/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_project_id"

    @pytest.mark.asyncio
    async def test_start_without_template(self, client: AsyncClient) -> None:
        project = (await client.post("/projects/", json={"name": "X"})).json()
        response = await client.post(f"/projects/{project['id']}/start")
        assert response.status_code == 424

    @pytest.mark.asyncio
    async def test_delete_project(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.delete(f"/projects/{project_id}")
        assert response.status_code == 204
        assert (await client.get(f"/projects/{project_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_list_projects(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.get("/projects/", params={"status": "in_progress"})
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [str(project_id)]


class TestChecklistApi:
    """Tests for checklist answer endpoints."""

    @pytest.mark.asyncio
    async def test_save_and_read_answers(self, client: AsyncClient, project_id: UUID) -> None:
        ids = await question_ids(client, project_id)

        result = await save(
            client, project_id, "executor", {ids[0]: {"answer": "No", "remark": "Stamp missing"}}
        )
        assert result == {"saved_count": 1, "total_attempted": 1}

        response = await client.get(
            f"/projects/{project_id}/checklist-answers",
            params={"phase": 1, "role": "executor"},
        )
        record = response.json()[ids[0]]
        assert record["answer"] == "No"
        assert record["remark"] == "Stamp missing"
        assert record["answered_by"] == "executor-1"

    @pytest.mark.asyncio
    async def test_invalid_answer_value(self, client: AsyncClient, project_id: UUID) -> None:
        ids = await question_ids(client, project_id)
        response = await client.put(
            f"/projects/{project_id}/checklist-answers",
            json={"phase": 1, "role": "reviewer", "answers": {ids[0]: {"answer": "NA"}}},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_answer_value"

    @pytest.mark.asyncio
    async def test_missing_role(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.put(
            f"/projects/{project_id}/checklist-answers", json={"phase": 1, "answers": {}}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_role"

    @pytest.mark.asyncio
    async def test_invalid_phase(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.get(
            f"/projects/{project_id}/checklist-answers",
            params={"phase": "zero", "role": "executor"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_phase"

    @pytest.mark.asyncio
    async def test_save_for_unstarted_phase(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.put(
            f"/projects/{project_id}/checklist-answers",
            json={"phase": 4, "role": "executor", "answers": {}},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_full_checklist_and_question_patch(
        self, client: AsyncClient, project_id: UUID
    ) -> None:
        checklist = (await client.get(f"/projects/{project_id}/stages/1/checklist")).json()
        assert checklist["stage_name"] == "Design"
        assert checklist["current_iteration"] == 1
        group = checklist["groups"][0]
        question = group["sections"][0]["questions"][0]

        response = await client.patch(
            f"/projects/{project_id}/stages/1/checklist/groups/{group['id']}"
            f"/questions/{question['id']}/reviewer",
            json={"answer": "Yes", "status": "Approved"},
        )
        assert response.status_code == 200
        patched = response.json()["sections"][0]["questions"][0]
        assert patched["reviewer_answer"] == "Yes"
        assert patched["reviewer_status"] == "Approved"

    @pytest.mark.asyncio
    async def test_checklist_of_unstarted_phase(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.get(f"/projects/{project_id}/stages/5/checklist")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_dropped_images_are_released(
        self, client: AsyncClient, project_id: UUID, janitor: ImageJanitor, image_store: Any
    ) -> None:
        ids = await question_ids(client, project_id)
        await save(client, project_id, "reviewer", {ids[0]: {"images": ["blob-1", "blob-2"]}})
        await save(client, project_id, "reviewer", {ids[0]: {"images": []}})
        await janitor.drain()

        assert sorted(image_store.deleted) == ["blob-1", "blob-2"]


class TestReviewCycleApi:
    """End-to-end review cycle through the HTTP API."""

    @pytest.mark.asyncio
    async def test_submit_revert_and_approve(self, client: AsyncClient, project_id: UUID) -> None:
        base = f"/projects/{project_id}"
        ids = await question_ids(client, project_id)
        await save(client, project_id, "executor", {ids[0]: {"answer": "Yes"}, ids[1]: {"answer": "No"}})
        await save(client, project_id, "reviewer", {ids[0]: {"answer": "Yes"}, ids[1]: {"answer": "Yes"}})

        compare = (await client.get(f"{base}/approval/compare", params={"phase": 1})).json()
        assert compare == {"match": False, "exec_count": 2, "rev_count": 2}

        submitted = await client.post(
            f"{base}/checklist-answers/submit", json={"phase": 1, "role": "executor"}
        )
        assert submitted.json()["defects_added"] == 0
        submitted = await client.post(
            f"{base}/checklist-answers/submit", json={"phase": 1, "role": "reviewer"}
        )
        assert submitted.json()["defects_added"] == 1
        assert submitted.json()["approval"]["reviewer_submitted"] is True

        status = await client.get(
            f"{base}/checklist-answers/submission-status",
            params={"phase": 1, "role": "reviewer"},
        )
        assert status.json()["is_submitted"] is True

        reverted = await client.post(
            f"{base}/approval/revert-to-executor",
            json={"phase": 1, "notes": "Recheck revision table"},
            headers={"X-Actor-Id": "rev-1"},
        )
        assert reverted.status_code == 200
        body = reverted.json()
        assert body["conflict_count"] == 1
        assert body["iteration_saved"] == 1
        assert body["approval"]["status"] == "reverted_to_executor"
        assert body["approval"]["executor_submitted"] is False

        iterations = (await client.get(f"{base}/stages/1/iterations")).json()
        assert iterations["total_iterations"] == 1
        assert iterations["current_iteration"] == 2
        assert iterations["iterations"][0]["revert_notes"] == "Recheck revision table"

        requested = await client.post(f"{base}/approval/request", json={"phase": 1})
        assert requested.json()["status"] == "pending"

        approved = await client.post(
            f"{base}/approval/approve", json={"phase": 1}, headers={"X-Actor-Id": "lead-1"}
        )
        assert approved.status_code == 200
        assert approved.json()["next_phase"] == 2
        assert approved.json()["approval"]["status"] == "approved"

        stages = (await client.get(f"{base}/stages")).json()
        assert [s["status"] for s in stages] == ["completed", "in_progress"]
        assert stages[0]["conflict_count"] == 1

        final = await client.post(f"{base}/approval/approve", json={"phase": 2})
        assert final.json()["project_completed"] is True
        project = (await client.get(base)).json()
        assert project["status"] == "completed"

    @pytest.mark.asyncio
    async def test_leader_revert_forbidden(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.post(f"/projects/{project_id}/approval/revert", json={"phase": 1})
        assert response.status_code == 403
        assert response.json()["detail"] == (
            "TeamLeader revert is no longer supported. Only Reviewer can revert to Executor."
        )

    @pytest.mark.asyncio
    async def test_status_before_any_action(self, client: AsyncClient, project_id: UUID) -> None:
        response = await client.get(f"/projects/{project_id}/approval/status", params={"phase": 2})
        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_status_with_superscript_phase(
        self, client: AsyncClient, project_id: UUID
    ) -> None:
        response = await client.get(
            f"/projects/{project_id}/approval/status", params={"phase": "²"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_phase"

    @pytest.mark.asyncio
    async def test_revert_count(self, client: AsyncClient, project_id: UUID) -> None:
        base = f"/projects/{project_id}/approval/revert-count"
        assert (await client.get(base)).json() == {"revert_count": 0}
        assert (await client.post(base, json={"phase": 1})).json() == {"revert_count": 1}
        assert (await client.get(base, params={"phase": 1})).json() == {"revert_count": 1}


class TestAnalyticsApi:
    """Tests for defect rate endpoints."""

    @pytest.mark.asyncio
    async def test_defect_rates(self, client: AsyncClient, project_id: UUID) -> None:
        base = f"/projects/{project_id}"
        ids = await question_ids(client, project_id)
        await save(client, project_id, "executor", {ids[0]: {"answer": "No"}})
        await save(client, project_id, "reviewer", {ids[0]: {"answer": "Yes"}})
        await client.post(f"{base}/checklist-answers/submit", json={"phase": 1, "role": "reviewer"})
        await client.post(f"{base}/approval/revert-to-executor", json={"phase": 1})

        rates = (await client.get(f"{base}/defect-rates")).json()
        phase_one = rates["phases"][0]
        assert phase_one["phase"] == 1
        assert [it["new_defects"] for it in phase_one["iterations"]] == [1, 0]
        assert phase_one["iterations"][0]["defect_rate"] == 25.0

        overall = (await client.get(f"{base}/overall-defect-rate")).json()
        assert overall["total_questions"] == 5
        assert overall["total_defects"] == 1
        assert overall["defect_rate"] == 20.0

    @pytest.mark.asyncio
    async def test_analysis_breakdowns(self, client: AsyncClient, project_id: UUID) -> None:
        base = f"/projects/{project_id}"
        ids = await question_ids(client, project_id)
        await save(
            client,
            project_id,
            "executor",
            {ids[0]: {"answer": "No", "category_id": "doc"}, ids[3]: {"answer": "Yes"}},
        )
        await save(
            client, project_id, "reviewer", {ids[0]: {"answer": "Yes"}, ids[3]: {"answer": "No"}}
        )
        await client.post(f"{base}/checklist-answers/submit", json={"phase": 1, "role": "reviewer"})

        categories = (await client.get(f"{base}/analysis/category-distribution")).json()
        assert categories == {
            "total_defects": 2,
            "distribution": [
                {"category_id": "Unassigned", "count": 1, "percentage": 50.0},
                {"category_id": "doc", "count": 1, "percentage": 50.0},
            ],
        }

        per_group = (await client.get(f"{base}/analysis/defects-per-group")).json()
        assert [
            (row["phase"], row["group_name"], row["total_questions"], row["defect_count"])
            for row in per_group
        ] == [(1, "Drawings", 3, 1), (1, "Calculations", 1, 1), (2, "Handover", 1, 0)]
        assert per_group[0]["defect_rate"] == 33.33

        analysis = (await client.get(f"{base}/analysis")).json()
        assert analysis["total_questions"] == 5
        assert analysis["total_defects"] == 2
        assert analysis["defect_rate"] == 40.0
        assert analysis["defects_by_group"] == per_group
        assert analysis["category_distribution"] == categories

    @pytest.mark.asyncio
    async def test_category_distribution_without_defects(
        self, client: AsyncClient, project_id: UUID
    ) -> None:
        response = await client.get(f"/projects/{project_id}/analysis/category-distribution")
        assert response.status_code == 200
        assert response.json() == {"total_defects": 0, "distribution": []}
