import json
from datetime import datetime, timezone

import httpx
import pytest

from puppet_master import Client, EmptyCode, EmptyCredential, JobRequest, NotFound, UnexpectedResponse, ValidationFailed
from tests.payloads import JOB_CODE, JOB_UUID, SHARED_MODULE, dumb_handler, job_json, jobs_page_json

ENDPOINT = "http://testserver/api/v1"


def _client(handler, **kwargs) -> Client:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return Client("test-token", ENDPOINT, kwargs.pop("team", "my-team"), http=http, **kwargs)


@pytest.mark.parametrize("token", ["", "  ", "\t\n"])
def test_client_rejects_blank_token(token):
    with pytest.raises(EmptyCredential):
        Client(token, ENDPOINT)


def test_client_accepts_non_blank_token():
    calls: list[httpx.Request] = []
    http = httpx.Client(transport=httpx.MockTransport(dumb_handler(204, None, calls)))
    client = Client("  abc  ", ENDPOINT, http=http)

    client.delete_job("J1")

    assert calls[0].headers["Authorization"] == "Bearer abc"
    assert client.team is None


def test_every_request_is_authenticated():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, {"data": job_json()}, calls))

    client.get_job(JOB_UUID)

    assert calls[0].headers["Authorization"] == "Bearer test-token"
    assert calls[0].headers["Accept"] == "application/json"
    assert calls[0].headers["Content-Type"] == "application/json"


def test_get_job_decodes_snapshot():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, {"data": job_json(uuid=JOB_UUID)}, calls))

    job = client.get_job(JOB_UUID)

    assert str(calls[0].url) == f"{ENDPOINT}/teams/my-team/jobs/{JOB_UUID}"
    assert calls[0].method == "GET"
    assert job.uuid == JOB_UUID
    assert job.status == "done"
    assert job.modules == {"shared": SHARED_MODULE}
    assert job.results["meta"] == {"attempts": [1, 2]}
    assert [entry.message for entry in job.logs] == ["203.0.113.7", "closing page"]
    assert job.started_at == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert job.duration == 1500
    assert job.error is None


def test_get_job_tolerates_null_collections():
    payload = job_json(status="queued", vars=None, modules=None, logs=None, results=None, duration=None)
    client = _client(dumb_handler(200, {"data": payload}))

    job = client.get_job(JOB_UUID)

    assert job.vars == {}
    assert job.modules == {}
    assert job.logs == ()
    assert job.results == {}
    assert job.duration == 0


def test_get_job_not_found():
    client = _client(dumb_handler(404))

    with pytest.raises(NotFound):
        client.get_job(JOB_UUID)


def test_get_job_with_blank_uuid_makes_no_request():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, {"data": job_json()}, calls))

    with pytest.raises(ValueError):
        client.get_job("")

    assert calls == []


def test_delete_job():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(204, None, calls))

    assert client.delete_job(JOB_UUID) is None
    assert calls[0].method == "DELETE"
    assert str(calls[0].url).endswith(f"/jobs/{JOB_UUID}")


def test_delete_job_not_found():
    client = _client(dumb_handler(404, b'{"message": "Not found."}'))

    with pytest.raises(NotFound):
        client.delete_job(JOB_UUID)


def test_delete_job_unexpected_status():
    client = _client(dumb_handler(200, {"data": job_json()}))

    with pytest.raises(UnexpectedResponse) as excinfo:
        client.delete_job(JOB_UUID)

    assert excinfo.value.status_code == 200


def test_create_job_posts_normalized_payload():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(201, {"data": job_json(status="created")}, calls))

    job = client.create_job(JobRequest(code=JOB_CODE))

    assert job.uuid == JOB_UUID
    assert job.code == JOB_CODE
    assert calls[0].method == "POST"
    assert str(calls[0].url) == f"{ENDPOINT}/teams/my-team/jobs"
    assert json.loads(calls[0].content) == {"code": JOB_CODE, "vars": {}, "modules": {}}


def test_create_job_sends_status_hint_and_mappings():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(201, {"data": job_json(status="created")}, calls))

    client.create_job(
        JobRequest(code=JOB_CODE, status="queued", vars={"page": "http://ifcfg.co"}, modules={"shared": SHARED_MODULE})
    )

    assert json.loads(calls[0].content) == {
        "code": JOB_CODE,
        "status": "queued",
        "vars": {"page": "http://ifcfg.co"},
        "modules": {"shared": SHARED_MODULE},
    }


@pytest.mark.parametrize("code", ["", "   ", "\n\t "])
def test_create_job_with_blank_code_makes_no_request(code):
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(201, {"data": job_json()}, calls))

    with pytest.raises(EmptyCode):
        client.create_job(JobRequest(code=code))

    assert len(calls) == 0


def test_create_job_validation_failure():
    client = _client(dumb_handler(422, {"errors": {"code": ["required"]}}))

    with pytest.raises(ValidationFailed) as excinfo:
        client.create_job(JobRequest(code="await page.goto(vars.page);"))

    assert "code (required)" in str(excinfo.value)
    assert excinfo.value.fields == {"code": ["required"]}


def test_create_job_unexpected_status():
    client = _client(dumb_handler(500, b"Server Error"))

    with pytest.raises(UnexpectedResponse) as excinfo:
        client.create_job(JobRequest(code="x"))

    assert excinfo.value.body == "Server Error"


def test_get_all_jobs():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, jobs_page_json(10), calls))

    page = client.get_all_jobs(1, 15)

    assert len(page.jobs) == 10
    assert page.total == 10
    assert page.current_page == 1
    assert page.last_page == 1
    assert page.per_page == 15
    assert not page.has_next
    assert calls[0].url.params["page"] == "1"
    assert calls[0].url.params["per_page"] == "15"
    assert "status" not in calls[0].url.params


def test_list_jobs_omits_default_pagination():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, jobs_page_json(0), calls))

    client.list_jobs()

    assert str(calls[0].url) == f"{ENDPOINT}/teams/my-team/jobs"


def test_get_jobs_by_status():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, jobs_page_json(2), calls))

    client.get_jobs_by_status("queued", per_page=100)

    assert str(calls[0].url) == f"{ENDPOINT}/teams/my-team/jobs?per_page=100&status=queued"


def test_iter_jobs_walks_all_pages():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        page = int(request.url.params["page"])
        return httpx.Response(200, json=jobs_page_json(2, page=page, last_page=3, per_page=2))

    client = _client(handler)

    uuids = [job.uuid for job in client.iter_jobs(per_page=2)]

    assert uuids == ["job-1-0", "job-1-1", "job-2-0", "job-2-1", "job-3-0", "job-3-1"]
    assert [request.url.params["page"] for request in calls] == ["1", "2", "3"]


@pytest.mark.parametrize("meta", ["missing", None, {}, {"current_page": 0, "last_page": 0}])
def test_iter_jobs_stops_when_page_number_is_unknown(meta):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) > 5:
            raise RuntimeError("pagination did not stop")
        body = {"data": [job_json()], "links": {"next": f"{ENDPOINT}/jobs?page=2"}}
        if meta != "missing":
            body["meta"] = meta
        return httpx.Response(200, json=body)

    client = _client(handler)

    jobs = list(client.iter_jobs())

    assert [job.uuid for job in jobs] == [JOB_UUID]
    assert len(calls) == 1
    assert not client.list_jobs().has_next


def test_iter_jobs_stops_when_page_does_not_advance():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) > 5:
            raise RuntimeError("pagination did not stop")
        # Always claims to be page 1 of 3 whatever was asked for.
        return httpx.Response(200, json=jobs_page_json(2, page=1, last_page=3, per_page=2))

    client = _client(handler)

    uuids = [job.uuid for job in client.iter_jobs(per_page=2)]

    assert uuids == ["job-1-0", "job-1-1", "job-1-0", "job-1-1"]
    assert [request.url.params["page"] for request in calls] == ["1", "2"]


def test_list_jobs_meta_from_field():
    client = _client(dumb_handler(200, jobs_page_json(3)))

    page = client.list_jobs()

    assert page.meta.from_ == 1
    assert page.meta.to == 3
    assert page.links.prev is None


def test_injected_http_client_is_not_closed():
    http = httpx.Client(transport=httpx.MockTransport(dumb_handler(204)))

    with Client("t", ENDPOINT, http=http) as client:
        client.delete_job("abc")

    assert not http.is_closed


def test_requests_carry_the_client_timeout():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, {"data": job_json()}, calls), timeout_seconds=12.0)

    client.get_job(JOB_UUID)

    assert calls[0].extensions["timeout"] == {"connect": 12.0, "read": 12.0, "write": 12.0, "pool": 12.0}


def test_per_call_timeout_only_lowers_the_client_timeout():
    calls: list[httpx.Request] = []
    client = _client(dumb_handler(200, {"data": job_json()}, calls), timeout_seconds=12.0)

    client.get_job(JOB_UUID, timeout=1.5)
    client.get_job(JOB_UUID, timeout=60.0)

    assert calls[0].extensions["timeout"]["read"] == 1.5
    assert calls[1].extensions["timeout"]["read"] == 12.0
