#!/usr/bin/env python3
"""
Student Results Dashboard - command line client.
Signs in against the results backend and browses students, subjects, results and uploads.
"""

import argparse
import getpass
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

# Configure logging
logging.basicConfig(
    level=logging.WARNING, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep resultsdash imports lazy (inside functions) so `--help` and the console
# server mode don't pay for modules they never use.
#


def format_timestamp_for_display(timestamp: Any) -> str:
    """Format an ISO timestamp (or datetime) to a compact date (YYYY-MM-DD)."""
    if not timestamp:
        return "N/A"
    if hasattr(timestamp, "strftime"):
        return timestamp.strftime("%Y-%m-%d")
    try:
        return date_parser.isoparse(str(timestamp)).strftime("%Y-%m-%d")
    except (ValueError, TypeError, AttributeError):
        return str(timestamp)[:10]


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=False))


def _dump_models(models: Any) -> Any:
    if isinstance(models, list):
        return [m.model_dump(mode="json", by_alias=True) for m in models]
    return models.model_dump(mode="json", by_alias=True)


def _print_table(rows: List[Dict[str, Any]], columns: List[str]) -> None:
    if not rows:
        print("(none)")
        return
    widths = {c: max(len(c), *(len(str(r.get(c, ""))) for r in rows)) for c in columns}
    print("  ".join(c.upper().ljust(widths[c]) for c in columns))
    for r in rows:
        print("  ".join(str(r.get(c, "")).ljust(widths[c]) for c in columns))


def login(email: Optional[str], password: Optional[str], role: str) -> None:
    from resultsdash.auth.credentials import authorize
    from resultsdash.auth.session import get_file_session_store
    from resultsdash.auth.tokens import StaticTokenProvider
    from resultsdash.client.http import client_from_config

    email = email or input("Email: ")
    password = password or getpass.getpass("Password: ")

    user = authorize(client_from_config(StaticTokenProvider(None)), email, password, role)
    store = get_file_session_store()
    store.save(user)
    print(f"Signed in as {user.name or user.email} ({user.role})")
    print(f"Session stored in {store.path}")


def logout() -> None:
    from resultsdash.auth.session import get_file_session_store

    if get_file_session_store().clear():
        print("Signed out")
    else:
        print("No active session")


def whoami(as_json: bool) -> None:
    from resultsdash.auth.session import get_file_session_store

    try:
        user = get_file_session_store().load()
    except ValueError as e:
        print(f"Stored session is unreadable ({e}). Use `python main.py --login`.", file=sys.stderr)
        sys.exit(1)
    if user is None:
        print("Not signed in. Use `python main.py --login`.")
        return
    if as_json:
        _print_json(user.public_view())
        return
    print(f"{user.name or '-'} <{user.email or '-'}> id={user.id} role={user.role}")


def list_students(as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    students = get_results_provider().get_students()
    if as_json:
        _print_json(_dump_models(students))
        return
    rows = [
        {
            "id": s.id,
            "name": s.name,
            "department": s.department,
            "year": s.year,
            "gpa": f"{s.gpa:.2f}",
            "status": s.status,
        }
        for s in students
    ]
    print(f"{len(students)} student(s)\n")
    _print_table(rows, ["id", "name", "department", "year", "gpa", "status"])


def show_student(student_id: str, as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    s = get_results_provider().get_student(student_id)
    if as_json:
        _print_json(_dump_models(s))
        return
    print(f"{s.name} ({s.id})")
    print(f"  Email:      {s.email}")
    print(f"  Department: {s.department}, year {s.year}")
    print(f"  GPA:        {s.gpa:.2f}")
    print(f"  Status:     {s.status}")
    print(f"  Since:      {format_timestamp_for_display(s.created_at)}")


def _print_results(results: List[Any], as_json: bool) -> None:
    if as_json:
        _print_json(_dump_models(results))
        return
    rows = [
        {
            "id": r.id,
            "student": r.student_id,
            "semester": r.semester,
            "subject": r.subject_code,
            "name": r.subject_name,
            "marks": f"{r.marks:g}",
            "grade": r.grade,
            "status": r.status,
        }
        for r in results
    ]
    print(f"{len(results)} result(s)\n")
    _print_table(rows, ["id", "student", "semester", "subject", "name", "marks", "grade", "status"])


def list_results(semester: Optional[str], as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    provider = get_results_provider()
    results = provider.get_results_by_semester(semester) if semester else provider.get_results()
    _print_results(results, as_json)


def results_for_student(student_id: str, as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    _print_results(get_results_provider().get_results_by_student(student_id), as_json)


def list_subjects(as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    subjects = get_results_provider().get_subjects()
    if as_json:
        _print_json(_dump_models(subjects))
        return
    rows = [{"code": s.code, "name": s.name, "department": s.department, "credits": s.credits} for s in subjects]
    _print_table(rows, ["code", "name", "department", "credits"])


def recent_uploads(limit: int, as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    uploads = get_results_provider().get_recent_uploads(limit)
    if as_json:
        _print_json(_dump_models(uploads))
        return
    rows = [
        {
            "name": u.name,
            "type": u.type,
            "records": u.records,
            "status": u.status,
            "date": format_timestamp_for_display(u.created_at),
        }
        for u in uploads
    ]
    _print_table(rows, ["name", "type", "records", "status", "date"])


def upload_csv(path: str, semester: Optional[str], upload_type: str, as_json: bool) -> None:
    import os

    from resultsdash.core.uploads import validate_csv_upload
    from resultsdash.providers.results_provider import get_results_provider

    if not semester:
        raise SystemExit("--semester is required with --upload-csv")

    filename = os.path.basename(path)
    validate_csv_upload(filename, os.path.getsize(path))
    with open(path, "rb") as f:
        result = get_results_provider().upload_results_csv(
            semester=semester, filename=filename, content=f, upload_type=upload_type
        )
    if as_json:
        _print_json(_dump_models(result))
        return
    print(f"Successfully processed {result.records_processed or 0} records from {filename}.")
    if result.message:
        print(f"   {result.message}")


def analytics(as_json: bool) -> None:
    from resultsdash.providers.results_provider import get_results_provider

    stats = get_results_provider().get_analytics_stats()
    if as_json:
        _print_json(_dump_models(stats))
        return
    print(f"Students: {stats.total_students} ({stats.active_students} active)")
    print(f"Subjects: {stats.total_subjects}")
    print(f"Results entered: {stats.total_results_entered}")
    if stats.students_per_department:
        print("\nStudents per department:")
        for dept, count in sorted(stats.students_per_department.items()):
            avg = stats.average_gpa_per_department.get(dept)
            avg_str = f"  avg GPA {avg:.2f}" if avg is not None else ""
            print(f"  {dept}: {count}{avg_str}")
    if stats.results_per_semester:
        print("\nResults per semester:")
        for sem, count in stats.results_per_semester.items():
            print(f"  {sem}: {count}")


def semester_report(semester: str, output: Optional[str], open_browser: bool) -> None:
    import os
    import tempfile
    import webbrowser

    from resultsdash.providers.results_provider import get_results_provider

    html = get_results_provider().get_semester_report_html(semester)
    if output:
        path = output
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
    elif open_browser:
        fd, path = tempfile.mkstemp(prefix="semester-report-", suffix=".html")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(html)
    else:
        print(html)
        return

    print(f"Report for {semester} written to {path}")
    if open_browser:
        webbrowser.open_new_tab(f"file://{os.path.abspath(path)}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Student results dashboard (command line)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sign in (prompts for missing email/password)
  python main.py --login --email admin@example.edu --role admin

  # Browse
  python main.py --list-students
  python main.py --list-results --semester "Fall 2023"

  # Upload a results CSV
  python main.py --upload-csv results.csv --semester "Fall 2023"

  # Open a semester report in the browser
  python main.py --report "Fall 2023" --open
        """,
    )

    # Session
    parser.add_argument("--login", action="store_true", help="Sign in and store the session locally")
    parser.add_argument("--email", help="Account email (for --login)")
    parser.add_argument("--password", help="Account password (for --login; prompted when omitted)")
    parser.add_argument("--role", default="admin", choices=["admin", "student"], help="Account role (default: admin)")
    parser.add_argument("--logout", action="store_true", help="Remove the stored session")
    parser.add_argument("--whoami", action="store_true", help="Show the signed-in user")

    # Data
    parser.add_argument("--list-students", action="store_true", help="List all students")
    parser.add_argument("--student", metavar="ID", help="Show one student's profile")
    parser.add_argument("--list-results", action="store_true", help="List results (all, or one --semester)")
    parser.add_argument("--results-for", metavar="ID", help="List results for one student")
    parser.add_argument("--semester", help="Semester (e.g., 'Fall 2023')")
    parser.add_argument("--list-subjects", action="store_true", help="List subjects")
    parser.add_argument(
        "--recent-uploads", nargs="?", const=5, type=int, metavar="N", help="Show the N most recent uploads (default: 5)"
    )
    parser.add_argument("--upload-csv", metavar="PATH", help="Upload a results CSV (requires --semester)")
    parser.add_argument("--upload-type", default="semester-results", help="CSV upload type (default: semester-results)")
    parser.add_argument("--analytics", action="store_true", help="Show admin analytics")
    parser.add_argument("--report", metavar="SEMESTER", help="Fetch the HTML report for a semester")
    parser.add_argument("--output", "-o", help="Write the --report HTML to this file")
    parser.add_argument("--open", action="store_true", help="Open the --report HTML in a browser")

    # Console server
    parser.add_argument("--serve-console", action="store_true", help="Run the dashboard console API server")
    parser.add_argument("--host", default="0.0.0.0", help="Console bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=3000, help="Console listen port (default: 3000)")

    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    from resultsdash.client.errors import ApiError
    from resultsdash.core.uploads import InvalidUploadError

    try:
        if args.serve_console:
            from resultsdash.api.console import run as run_console

            run_console(host=args.host, port=args.port)
            return

        if args.login:
            login(args.email, args.password, args.role)
            return
        if args.logout:
            logout()
            return
        if args.whoami:
            whoami(args.json)
            return

        if args.list_students:
            list_students(args.json)
            return
        if args.student:
            show_student(args.student, args.json)
            return
        if args.list_results:
            list_results(args.semester, args.json)
            return
        if args.results_for:
            results_for_student(args.results_for, args.json)
            return
        if args.list_subjects:
            list_subjects(args.json)
            return
        if args.recent_uploads is not None:
            recent_uploads(args.recent_uploads, args.json)
            return
        if args.upload_csv:
            upload_csv(args.upload_csv, args.semester, args.upload_type, args.json)
            return
        if args.analytics:
            analytics(args.json)
            return
        if args.report:
            semester_report(args.report, args.output, args.open)
            return

        # No arguments provided
        parser.print_help()
        print("\nTip: start with `python main.py --login`")

    except (ApiError, InvalidUploadError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
