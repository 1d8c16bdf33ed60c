import asyncio
import unittest
from datetime import UTC, datetime, timedelta

from claws_assistant.collaborators import QueryScope
from claws_assistant.errors import CollaboratorError, ToolInputError, UnsupportedResourceError
from claws_assistant.tools.log_groups import (
    LogGroupLookup,
    default_registry,
    log_group_name_from_arn,
    resource_name_from_arn,
)
from claws_assistant.tools.log_search import LogLine
from claws_assistant.tools.tail_logs_tool import TailLogsTool, parse_since
from tests.fakes import FakeLogSearch, FakeResource, FakeResourceQuery

TASK_DEF = FakeResource(
    id="api:7",
    raw={"containerDefinitions": [{"logConfiguration": {"options": {"awslogs-group": "/ecs/api"}}}]},
)


def _resolve(query: FakeResourceQuery, service: str, resource_type: str, resource_id: str, cluster: str = "") -> str:
    lookup = LogGroupLookup(resources=query, scope=QueryScope(region="us-east-1"), cluster=cluster)
    return asyncio.run(default_registry().resolve(lookup, service, resource_type, resource_id))


class ParseSinceTests(unittest.TestCase):
    def test_valid_durations(self) -> None:
        self.assertEqual(timedelta(minutes=5), parse_since("5m"))
        self.assertEqual(timedelta(hours=1, minutes=30), parse_since("1h30m"))
        self.assertEqual(timedelta(days=2), parse_since("2d"))
        self.assertEqual(timedelta(seconds=45), parse_since("45s"))

    def test_invalid_durations(self) -> None:
        for text in ("", "soon", "5", "m5", "-5m", "0m", "5m later"):
            self.assertIsNone(parse_since(text), text)


class LogGroupRegistryTests(unittest.TestCase):
    def test_lambda_name_is_derived_without_lookup(self) -> None:
        query = FakeResourceQuery()
        self.assertEqual("/aws/lambda/my-fn", _resolve(query, "lambda", "functions", "my-fn"))
        self.assertEqual([], query.get_calls)

    def test_ecs_service_goes_through_task_definition(self) -> None:
        service = FakeResource(id="api", raw={"taskDefinition": "arn:aws:ecs:us-east-1:1:task-definition/api:7"})
        query = FakeResourceQuery({("ecs", "services"): [service], ("ecs", "task-definitions"): [TASK_DEF]})

        self.assertEqual("/ecs/api", _resolve(query, "ecs", "services", "api", cluster="prod"))
        self.assertEqual(("ecs", "services", "api"), query.get_calls[0][:3])
        self.assertEqual({"ClusterName": "prod"}, dict(query.get_calls[0][3].filters))
        self.assertEqual(("ecs", "task-definitions", "api:7"), query.get_calls[1][:3])

    def test_ecs_task_requires_cluster(self) -> None:
        with self.assertRaises(ToolInputError):
            _resolve(FakeResourceQuery(), "ecs", "tasks", "abc")

    def test_codebuild_project_falls_back_to_default_group(self) -> None:
        query = FakeResourceQuery({("codebuild", "projects"): [FakeResource(id="build-app", raw={})]})
        self.assertEqual("/aws/codebuild/build-app", _resolve(query, "codebuild", "projects", "build-app"))

    def test_arn_fields_are_reduced_to_group_names(self) -> None:
        trail = FakeResource(
            id="audit",
            raw={"CloudWatchLogsLogGroupArn": "arn:aws:logs:us-east-1:123:log-group:CloudTrail/audit:*"},
        )
        query = FakeResourceQuery({("cloudtrail", "trails"): [trail]})
        self.assertEqual("CloudTrail/audit", _resolve(query, "cloudtrail", "trails", "audit"))

    def test_missing_log_configuration(self) -> None:
        query = FakeResourceQuery({("apigateway", "stages"): [FakeResource(id="prod", raw={})]})
        with self.assertRaises(CollaboratorError):
            _resolve(query, "apigateway", "stages", "prod")

    def test_unsupported_key_lists_every_supported_pair(self) -> None:
        with self.assertRaises(UnsupportedResourceError) as ctx:
            _resolve(FakeResourceQuery(), "s3", "buckets", "b")
        message = str(ctx.exception)
        for key in default_registry().supported():
            self.assertIn(key, message)
        self.assertEqual(10, len(default_registry().supported()))

    def test_arn_helpers(self) -> None:
        self.assertEqual("/aws/x", log_group_name_from_arn("arn:aws:logs:us-east-1:1:log-group:/aws/x:*"))
        self.assertEqual("plain", log_group_name_from_arn("plain"))
        self.assertEqual("api:7", resource_name_from_arn("arn:aws:ecs:us-east-1:1:task-definition/api:7"))


class TailLogsToolTests(unittest.TestCase):
    def test_fetches_and_formats_logs(self) -> None:
        stamp = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)
        search = FakeLogSearch([LogLine(stamp, "START RequestId: 1"), LogLine(stamp, "END")])
        tool = TailLogsTool(FakeResourceQuery(), search)

        result = asyncio.run(
            tool.execute(
                {
                    "service": "lambda",
                    "resource_type": "functions",
                    "region": "us-west-2",
                    "id": "fn",
                    "since": "1h",
                    "filter": "ERROR",
                    "limit": 9999,
                }
            )
        )

        lines = result.splitlines()
        self.assertEqual("Logs from /aws/lambda/fn (2 events):", lines[0])
        local = stamp.astimezone().strftime("%H:%M:%S")
        self.assertEqual(f"[{local}] START RequestId: 1", lines[2])
        call = search.calls[0]
        self.assertEqual("/aws/lambda/fn", call["log_group"])
        self.assertEqual("us-west-2", call["region"])
        self.assertEqual("ERROR", call["filter_pattern"])
        self.assertEqual(500, call["limit"])
        elapsed = datetime.now(UTC) - call["start_time"]
        self.assertGreaterEqual(elapsed, timedelta(minutes=59))
        self.assertLess(elapsed, timedelta(minutes=61))

    def test_invalid_since_falls_back_to_default(self) -> None:
        search = FakeLogSearch()
        result = asyncio.run(
            TailLogsTool(FakeResourceQuery(), search).execute(
                {"service": "lambda", "resource_type": "functions", "region": "us-east-1", "id": "fn", "since": "later"}
            )
        )
        self.assertEqual("No logs found in /aws/lambda/fn (since 15m)", result)
        self.assertEqual(100, search.calls[0]["limit"])

    def test_cluster_required_before_any_lookup(self) -> None:
        query = FakeResourceQuery()
        search = FakeLogSearch()
        with self.assertRaises(ToolInputError) as ctx:
            asyncio.run(
                TailLogsTool(query, search).execute(
                    {"service": "ecs", "resource_type": "services", "region": "us-east-1", "id": "api"}
                )
            )
        self.assertEqual("cluster parameter is required for ecs/services", str(ctx.exception))
        self.assertEqual([], query.get_calls)
        self.assertEqual([], search.calls)

    def test_unsupported_resource_keeps_error_type(self) -> None:
        with self.assertRaises(UnsupportedResourceError) as ctx:
            asyncio.run(
                TailLogsTool(FakeResourceQuery(), FakeLogSearch()).execute(
                    {"service": "s3", "resource_type": "buckets", "region": "us-east-1", "id": "b"}
                )
            )
        self.assertTrue(str(ctx.exception).startswith("extracting log group for s3/buckets/b"))


if __name__ == "__main__":
    unittest.main()
