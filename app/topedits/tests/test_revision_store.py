from __future__ import annotations

from datetime import date, datetime, timezone
from unittest import mock

from django.test import TestCase

from topedits.exceptions import StoreUnavailable
from topedits.models import Project, ProjectConfiguration
from topedits.services.context import TopEditsContext
from topedits.services.revision_store import RevisionStore


class RevisionStoreTests(TestCase):
    def setUp(self):
        self.project = Project.objects.create(
            name="Test Wiki",
            code="test",
            api_endpoint="https://test.example/api.php",
        )
        self.configuration = ProjectConfiguration.objects.create(project=self.project)
        self.superset_patcher = mock.patch("topedits.services.revision_store.SupersetQuery")
        self.mock_superset_cls = self.superset_patcher.start()
        self.addCleanup(self.superset_patcher.stop)
        self.mock_superset = self.mock_superset_cls.return_value
        self.mock_superset.query.return_value = []
        self.site = mock.Mock(name="site")

    def store(self):
        return RevisionStore(self.project, self.site)

    def sql(self):
        return self.mock_superset.query.call_args[0][0]

    def test_namespace_query_filters_orders_and_paginates(self):
        self.mock_superset.query.return_value = [
            {
                "page_id": "7",
                "page_namespace": "0",
                "page_title": "Foo",
                "page_is_redirect": "0",
                "count": "5",
                "pa_class": None,
            },
            {
                "page_id": 8,
                "page_namespace": 0,
                "page_title": "Bar",
                "page_is_redirect": 1,
                "count": 3,
                "pa_class": None,
            },
        ]

        pages = self.store().count_edits_by_page_in_namespace("Alice", 0, limit=50, offset=100)

        self.mock_superset_cls.assert_called_once_with(site=self.site)
        sql = self.sql()
        self.assertIn("actor_name = 'Alice'", sql)
        self.assertIn("page_namespace = 0", sql)
        self.assertIn("ORDER BY count DESC, page_title ASC", sql)
        self.assertIn("LIMIT 50", sql)
        self.assertIn("OFFSET 100", sql)
        self.assertIn("revision_userindex", sql)
        self.assertIn("NULL AS pa_class", sql)
        self.assertEqual(
            [(p.page_id, p.title, p.count) for p in pages], [(7, "Foo", 5), (8, "Bar", 3)]
        )
        self.assertFalse(pages[0].is_redirect)
        self.assertTrue(pages[1].is_redirect)
        self.assertIsNone(pages[0].assessment_class)

    def test_author_name_is_escaped(self):
        self.store().count_edits_by_page_in_namespace("O'Brien", 0, limit=10)

        self.assertIn("actor_name = 'O\\'Brien'", self.sql())

    def test_date_range_filters_revision_timestamps(self):
        self.store().count_edits_by_page_all_namespaces(
            "Alice", start=date(2024, 1, 1), end=date(2024, 1, 31)
        )

        sql = self.sql()
        self.assertIn("rev_timestamp >= '20240101000000'", sql)
        self.assertIn("rev_timestamp <= '20240131235959'", sql)

    def test_plain_revision_view_when_userindex_disabled(self):
        self.configuration.use_userindex_views = False
        self.configuration.save()

        self.store().count_edits_by_page_all_namespaces("Alice")

        self.assertNotIn("revision_userindex", self.sql())

    def test_assessments_only_for_configured_namespaces(self):
        self.configuration.has_page_assessments = True
        self.configuration.assessment_namespaces = [0]
        self.configuration.save()
        self.mock_superset.query.return_value = [
            {"page_id": 1, "page_namespace": 0, "page_title": "A", "count": 4, "pa_class": "GA"},
            {"page_id": 2, "page_namespace": 1, "page_title": "A", "count": 2, "pa_class": "B"},
        ]

        pages = self.store().count_edits_by_page_all_namespaces("Alice")

        self.assertIn("FROM page_assessments", self.sql())
        self.assertIn("pa_class != 'Unknown'", self.sql())
        self.assertEqual([p.assessment_class for p in pages], ["GA", None])

    def test_namespace_query_skips_assessments_outside_configured_namespaces(self):
        self.configuration.has_page_assessments = True
        self.configuration.save()

        self.store().count_edits_by_page_in_namespace("Alice", 4, limit=10)

        self.assertNotIn("page_assessments", self.sql())

    def test_missing_configuration_uses_defaults(self):
        self.configuration.delete()

        store = RevisionStore(Project.objects.get(pk=self.project.pk), self.site)
        store.count_edits_by_page_all_namespaces("Alice")

        self.assertIn("revision_userindex", self.sql())
        self.assertIn("NULL AS pa_class", self.sql())

    def test_rows_without_page_id_are_skipped(self):
        self.mock_superset.query.return_value = [
            {"page_id": None, "page_namespace": 0, "page_title": "Broken", "count": 1},
            {"page_id": 3, "page_namespace": 0, "page_title": "Fine", "count": 1},
        ]

        with self.assertLogs("topedits.services.revision_store", level="WARNING"):
            pages = self.store().count_edits_by_page_all_namespaces("Alice")

        self.assertEqual([p.title for p in pages], ["Fine"])

    def test_count_pages_in_namespace(self):
        self.mock_superset.query.return_value = [{"count": "12"}]

        count = self.store().count_pages_in_namespace("Alice", 2)

        self.assertEqual(count, 12)
        self.assertIn("COUNT(DISTINCT page_id)", self.sql())
        self.assertIn("page_namespace = 2", self.sql())

    def test_count_pages_without_rows_is_zero(self):
        self.assertEqual(self.store().count_pages_in_namespace("Alice", 0), 0)

    def test_edit_sequence_joins_child_revisions(self):
        self.mock_superset.query.return_value = [
            {
                "id": "11",
                "page_id": "5",
                "namespace": "4",
                "timestamp": "20240102030405",
                "minor": "1",
                "length": "150",
                "sha1": "sha-b",
                "parent_id": "10",
                "parent_length": "100",
                "parent_sha1": "sha-a",
                "user_id": "42",
                "username": "Alice",
                "comment": b"expand",
                "child_sha1": "sha-a",
                "child_comment": "Undid revision 11",
            }
        ]

        rows = self.store().edit_sequence_for_page(5, "Alice")

        sql = self.sql()
        self.assertIn("childrevs.rev_parent_id = revs.rev_id", sql)
        self.assertIn("revs.rev_page = 5", sql)
        self.assertIn("JOIN page ON page.page_id = revs.rev_page", sql)
        self.assertIn("ORDER BY revs.rev_timestamp DESC", sql)
        self.assertNotIn("LIMIT 1", sql)
        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row.revision.id, 11)
        self.assertEqual(row.revision.parent_id, 10)
        self.assertEqual(row.revision.namespace, 4)
        self.assertEqual(row.revision.length, 150)
        self.assertEqual(row.revision.comment, "expand")
        self.assertEqual(row.revision.author_id, 42)
        self.assertTrue(row.revision.minor)
        self.assertEqual(
            row.revision.timestamp, datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        )
        self.assertEqual(row.parent_length, 100)
        self.assertEqual(row.child_sha1, "sha-a")
        self.assertEqual(row.child_comment, "Undid revision 11")

    def test_latest_edit_has_no_child_data(self):
        self.mock_superset.query.return_value = [
            {
                "id": 12,
                "page_id": 5,
                "timestamp": "20240103000000",
                "minor": 0,
                "length": 90,
                "sha1": "sha-c",
                "parent_id": 0,
                "parent_length": None,
                "parent_sha1": None,
                "user_id": None,
                "username": "192.0.2.1",
                "comment": "",
                "child_sha1": None,
                "child_comment": None,
            }
        ]

        rows = self.store().latest_edit_for_page(5, "192.0.2.1")

        sql = self.sql()
        self.assertIn("LIMIT 1", sql)
        self.assertNotIn("childrevs", sql)
        self.assertIsNone(rows[0].revision.parent_id)
        self.assertIsNone(rows[0].revision.author_id)
        self.assertIsNone(rows[0].child_sha1)

    def test_query_failure_raises_store_unavailable(self):
        self.mock_superset.query.side_effect = RuntimeError("Superset login failed")

        with self.assertLogs("topedits.services.revision_store", level="ERROR"):
            with self.assertRaises(StoreUnavailable) as ctx:
                self.store().count_edits_by_page_all_namespaces("Alice")

        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(self.mock_superset.query.call_count, 1)

    def test_malformed_payload_raises_store_unavailable(self):
        self.mock_superset.query.return_value = ["not a row"]

        with self.assertLogs("topedits.services.revision_store", level="ERROR"):
            with self.assertRaises(StoreUnavailable):
                self.store().edit_sequence_for_page(5, "Alice")


class TopEditsContextTests(TestCase):
    def setUp(self):
        self.project = Project.objects.create(
            name="Test Wiki",
            code="test",
            api_endpoint="https://test.example/api.php",
        )

    @mock.patch("topedits.services.context.pywikibot.Site")
    def test_store_is_created_once_per_project(self, mock_site):
        with TopEditsContext() as context:
            first = context.store_for(self.project)
            second = context.store_for(self.project)

        self.assertIs(first, second)
        mock_site.assert_called_once_with(code="test", fam="wikipedia")

    @mock.patch("topedits.services.context.pywikibot.Site")
    def test_site_failure_raises_store_unavailable(self, mock_site):
        mock_site.side_effect = ValueError("unknown family")

        with self.assertLogs("topedits.services.context", level="ERROR"):
            with self.assertRaises(StoreUnavailable):
                TopEditsContext().open().store_for(self.project)

    def test_close_releases_cache(self):
        context = TopEditsContext().open()
        self.assertTrue(context.cache.is_open)

        context.close()

        self.assertFalse(context.cache.is_open)
