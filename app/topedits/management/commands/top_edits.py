"""
Management command to print an author's top edits as JSON.

Without options it lists the most edited pages in every namespace. With
--namespace it lists one namespace, with --page it lists the author's edits
to a single page.
"""

import argparse
import json
from dataclasses import asdict
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from topedits.exceptions import InvalidArgument, StoreUnavailable
from topedits.models import Project
from topedits.services import Page, TopEditsContext, TopEditsService


def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid date '{value}', expected YYYY-MM-DD"
        ) from exc


class Command(BaseCommand):
    help = "Print the pages an author edited most, or their edits to one page"

    def add_arguments(self, parser):
        parser.add_argument("project", type=str, help="Project code (e.g., 'fi')")
        parser.add_argument("author", type=str, help="User name of the author")
        parser.add_argument(
            "--namespace",
            type=int,
            help="Only list pages in this namespace",
        )
        parser.add_argument(
            "--page",
            type=int,
            help="List the author's edits to the page with this ID",
        )
        parser.add_argument(
            "--count",
            action="store_true",
            help="Print the number of distinct pages edited in --namespace",
        )
        parser.add_argument("--limit", type=int, help="Number of pages (per namespace)")
        parser.add_argument("--offset", type=int, default=0, help="Pages to skip")
        parser.add_argument("--start", type=_parse_date, help="First day (YYYY-MM-DD)")
        parser.add_argument("--end", type=_parse_date, help="Last day (YYYY-MM-DD)")

    def handle(self, *args, **options):
        try:
            project = Project.objects.get(code=options["project"])
        except Project.DoesNotExist as exc:
            raise CommandError(f"Project '{options['project']}' not found") from exc

        author = options["author"]
        namespace = options.get("namespace")
        limit = options.get("limit")
        start = options.get("start")
        end = options.get("end")

        with TopEditsContext() as context:
            service = TopEditsService(context)
            try:
                if options.get("page") is not None:
                    page = Page(id=options["page"], namespace=namespace or 0, title="")
                    result = service.top_edits_page(project, page, author)
                elif options.get("count"):
                    if namespace is None:
                        raise CommandError("--count requires --namespace")
                    result = service.count_edits_namespace(project, author, namespace, start, end)
                elif namespace is not None:
                    result = service.top_edits_namespace(
                        project,
                        author,
                        namespace,
                        limit if limit is not None else 1000,
                        options["offset"],
                        start,
                        end,
                    )
                else:
                    result = service.top_edits_all_namespaces(
                        project, author, limit if limit is not None else 10, start, end
                    )
            except InvalidArgument as exc:
                raise CommandError(f"Invalid argument: {exc}") from exc
            except StoreUnavailable as exc:
                raise CommandError(f"Replica unavailable: {exc}") from exc

        if isinstance(result, list):
            payload = [asdict(row) for row in result]
        else:
            payload = {"namespace": namespace, "pages": result}
        self.stdout.write(json.dumps(payload, indent=2, default=str, ensure_ascii=False))
