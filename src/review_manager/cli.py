"""Command-line interface for the review manager."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Callable

from .config import Settings, default_backup_path, load_dotenv_if_present
from .fuzzy import ConfigurationError, MatchResult, validate_max_distance
from .normalization import clean_reviewer_name
from .records import DATE_FORMAT_HINT, Review, ReviewValidationError, parse_score
from .store import ReviewStore

InputFn = Callable[[str], str]
CommandResult = tuple[dict[str, Any], int]

_FEEDBACK_PREVIEW = 50


def cli() -> None:
    """Console-script entry point.

    Installed as `review-manager`:

        review-manager --csv reviews.csv search "Charlei" --fuzzy
    """
    raise SystemExit(main())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Manage customer reviews stored in a delimited text file, with "
            "substring and typo-tolerant name search."
        )
    )
    parser.add_argument(
        "--csv",
        default=None,
        help="Path to the review data file. Default: $REVIEW_MANAGER_CSV or reviews.csv.",
    )
    parser.add_argument(
        "--jsonl",
        "--compact-json",
        action="store_true",
        help="Print output as a single-line JSON (JSONL-style).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log loading/saving details to stderr.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show all reviews and statistics.")

    show = sub.add_parser("show", help="Show one review.")
    show.add_argument("number", type=int, help="Review number (1-based).")

    add = sub.add_parser("add", help="Add a review.")
    add.add_argument("--name", required=True, help="Reviewer name.")
    add.add_argument("--score", required=True, help="Satisfaction score (1-5).")
    add.add_argument("--date", required=True, help=f"Review date ({DATE_FORMAT_HINT}).")
    add.add_argument("--feedback", default="", help="Feedback text.")

    update = sub.add_parser("update", help="Change fields of a review.")
    update.add_argument("number", type=int, help="Review number (1-based).")
    update.add_argument("--name", default=None)
    update.add_argument("--score", default=None)
    update.add_argument("--date", default=None)
    update.add_argument("--feedback", default=None)

    search = sub.add_parser("search", help="Search reviews by reviewer name.")
    search.add_argument("term", help="Name or part of a name.")
    search.add_argument(
        "--fuzzy",
        action="store_true",
        help="Rank by edit distance instead of substring matching.",
    )
    search.add_argument(
        "--max-distance",
        type=int,
        default=None,
        help="Largest edit distance accepted with --fuzzy. Default: $REVIEW_MANAGER_MAX_DISTANCE or 2.",
    )

    delete = sub.add_parser("delete", help="Delete reviews.")
    target = delete.add_mutually_exclusive_group(required=True)
    target.add_argument("--number", type=int, help="Review number (1-based).")
    target.add_argument("--name", help="Delete the first review with this exact name.")
    target.add_argument("--all-by", help="Delete every review by this reviewer.")
    delete.add_argument(
        "--fuzzy",
        action="store_true",
        help="With --name: fall back to the closest fuzzy match when no exact name exists.",
    )
    delete.add_argument("--max-distance", type=int, default=None)
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")

    sub.add_parser("stats", help="Show review statistics.")

    backup = sub.add_parser("backup", help="Copy the data file to a backup file.")
    backup.add_argument("--to", default=None, help="Backup path.")

    restore = sub.add_parser("restore", help="Replace the data file with a backup.")
    restore.add_argument("--from", dest="source", default=None, help="Backup path.")

    sub.add_parser("menu", help="Interactive menu.")

    return parser


def main(argv: list[str] | None = None, input_fn: InputFn = input) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    load_dotenv_if_present()
    try:
        settings = Settings.from_env()
    except RuntimeError as e:
        raise SystemExit(str(e)) from e

    csv_path = Path(args.csv) if args.csv else settings.csv_path
    backup_path = settings.backup_path if not args.csv else default_backup_path(csv_path)

    try:
        store = ReviewStore.from_csv(csv_path, missing_ok=True)
    except (OSError, UnicodeDecodeError) as e:
        raise SystemExit(f"error: cannot read {csv_path}: {e}") from e

    if args.command == "menu":
        return run_menu(store, settings, input_fn=input_fn)

    handler = _COMMANDS[args.command]
    try:
        out, code = handler(args, store, settings, backup_path, input_fn)
    except (ReviewValidationError, ConfigurationError, OSError, UnicodeDecodeError) as e:
        raise SystemExit(f"error: {e}") from e

    _print_json(out, compact=args.jsonl)
    return code


# -- subcommands ---------------------------------------------------------------


def _cmd_list(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    out = {
        "reviews": [_numbered(store, i) for i in range(len(store))],
        "statistics": store.statistics().to_dict(),
    }
    return out, 0


def _cmd_show(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    index = _index_from_number(store, args.number)
    return {"review": _numbered(store, index)}, 0


def _cmd_add(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    review = Review.create(args.name, args.score, args.date, args.feedback)
    index = store.add(review)
    store.save()
    return {"added": _numbered(store, index)}, 0


def _cmd_update(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    index = _index_from_number(store, args.number)

    changes: dict[str, Any] = {}
    if args.name is not None:
        name = clean_reviewer_name(args.name)
        if name is None:
            raise ReviewValidationError("reviewer name is empty")
        changes["reviewer_name"] = name
    if args.score is not None:
        changes["satisfaction_score"] = parse_score(args.score)
    if args.date is not None:
        changes["review_date"] = args.date.strip()
    if args.feedback is not None:
        changes["feedback"] = args.feedback

    if not changes:
        raise SystemExit("update: nothing to change (use --name/--score/--date/--feedback)")

    store.update(index, **changes)
    store.save()
    return {"updated": _numbered(store, index)}, 0


def _cmd_search(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    out: dict[str, Any] = {"query": args.term}
    if args.fuzzy:
        max_distance = _max_distance(args, settings)
        results = store.search_fuzzy(args.term, max_distance)
        out["mode"] = "fuzzy"
        out["max_distance"] = max_distance
        out["matches"] = [_fuzzy_row(store, r) for r in results]
    else:
        out["mode"] = "partial"
        out["matches"] = [_numbered(store, i) for i in store.search_partial(args.term)]

    if not out["matches"]:
        out["suggestions"] = _suggestions(store, args.term, settings)
    return out, 0


def _cmd_delete(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    if args.all_by is not None:
        name = args.all_by.strip()
        # Distance 0 is the same case-insensitive equality delete_all_by_name uses.
        count = len(store.search_fuzzy(name, 0))
        if count == 0:
            return {"deleted": 0, "suggestions": _suggestions(store, name, settings)}, 1
        if not args.yes and not _confirm(input_fn, f"Delete {count} review(s) by {name}?"):
            return {"deleted": 0, "cancelled": True}, 1
        deleted = store.delete_all_by_name(name)
        store.save()
        return {"deleted": deleted}, 0

    match_info: dict[str, Any] | None = None
    if args.number is not None:
        index = _index_from_number(store, args.number)
    else:
        name = args.name.strip()
        index = store.find_by_name(name)
        if index is None and args.fuzzy:
            results = store.search_fuzzy(name, _max_distance(args, settings))
            if results:
                index = results[0].candidate_id
                match_info = {"distance": results[0].distance, "tier": results[0].tier.value}
        if index is None:
            return {"deleted": None, "suggestions": _suggestions(store, name, settings)}, 1

    review = store.get(index)
    if not args.yes and not _confirm(
        input_fn,
        f"Delete review #{index + 1} by {review.reviewer_name} ({review.review_date})?",
    ):
        return {"deleted": None, "cancelled": True}, 1

    row = _numbered(store, index)
    store.delete_at(index)
    store.save()
    out: dict[str, Any] = {"deleted": row}
    if match_info is not None:
        out["match"] = match_info
    return out, 0


def _cmd_stats(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    return {"statistics": store.statistics().to_dict()}, 0


def _cmd_backup(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    destination = Path(args.to) if args.to else backup_path
    store.backup(destination)
    return {"backup": str(destination), "reviews": len(store)}, 0


def _cmd_restore(
    args: argparse.Namespace,
    store: ReviewStore,
    settings: Settings,
    backup_path: Path,
    input_fn: InputFn,
) -> CommandResult:
    source = Path(args.source) if args.source else backup_path
    count = store.restore(source)
    return {"restored_from": str(source), "reviews": count}, 0


_COMMANDS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "add": _cmd_add,
    "update": _cmd_update,
    "search": _cmd_search,
    "delete": _cmd_delete,
    "stats": _cmd_stats,
    "backup": _cmd_backup,
    "restore": _cmd_restore,
}


# -- interactive menu ------------------------------------------------------------


def run_menu(
    store: ReviewStore,
    settings: Settings,
    *,
    input_fn: InputFn = input,
    print_fn: Callable[..., None] = print,
) -> int:
    """Numbered menu loop. Changes are written only by "Save & Exit"."""
    print_fn("=== Customer Review Management System ===")
    print_fn(f"Loaded {len(store)} reviews" if len(store) else "Starting with nothing")

    actions: dict[str, Callable[[], None]] = {
        "1": lambda: _menu_add(store, input_fn, print_fn),
        "2": lambda: print_fn(format_table(store)),
        "3": lambda: _menu_search(store, settings, input_fn, print_fn),
        "4": lambda: _menu_delete(store, settings, input_fn, print_fn),
        "5": lambda: print_fn(format_statistics(store)),
    }

    while True:
        print_fn("")
        print_fn("=== Main Menu ===")
        print_fn("1. Add Review")
        print_fn("2. Display All Reviews")
        print_fn("3. Search Reviews")
        print_fn("4. Delete Review")
        print_fn("5. Statistics")
        print_fn("6. Save & Exit")
        try:
            choice = input_fn("Enter choice (1-6): ").strip()
            if choice == "6":
                store.save()
                print_fn("Data saved successfully!")
                print_fn("Bye")
                return 0
            action = actions.get(choice)
            if action is None:
                print_fn("Invalid choice!")
                continue
            action()
        except EOFError:
            print_fn("")
            print_fn("Input closed; unsaved changes discarded.")
            return 1


def _menu_add(store: ReviewStore, input_fn: InputFn, print_fn) -> None:
    print_fn("=== Add New Review ===")
    name = None
    while name is None:
        name = clean_reviewer_name(input_fn("Enter reviewer name: "))
        if name is None:
            print_fn("Name cannot be empty")

    while True:
        try:
            score = parse_score(input_fn("Enter satisfaction score (1-5): "))
            break
        except ReviewValidationError:
            print_fn("Please enter a score between 1 to 5")

    while True:
        review_date = input_fn(f"Enter review date ({DATE_FORMAT_HINT}): ").strip()
        feedback = input_fn("Enter feedback: ")
        try:
            review = Review.create(name, score, review_date, feedback)
            break
        except ReviewValidationError as e:
            print_fn(f"Invalid review: {e}")

    store.add(review)
    print_fn("Review added!")


def _menu_search(store: ReviewStore, settings: Settings, input_fn: InputFn, print_fn) -> None:
    term = input_fn("Enter name to search: ").strip()
    indices = store.search_partial(term)
    if indices:
        print_fn(format_table(store, indices))
        return

    results = store.search_fuzzy(term, settings.max_distance)
    if results:
        print_fn(f"No name contains '{term}'. Closest names:")
        for r in results:
            review = store.get(r.candidate_id)
            print_fn(
                f"{r.candidate_id + 1}. {review.reviewer_name} ({r.tier.value}, distance {r.distance})"
            )
        return

    print_fn(f"No reviews found for '{term}'.")
    suggestions = _suggestions(store, term, settings)
    if suggestions:
        print_fn("Did you mean: " + ", ".join(s["name"] for s in suggestions) + "?")


def _menu_delete(store: ReviewStore, settings: Settings, input_fn: InputFn, print_fn) -> None:
    if len(store) == 0:
        print_fn("No reviews to delete.")
        return

    name = input_fn("Enter reviewer name to delete: ").strip()
    index = store.find_by_name(name)
    if index is None:
        results = store.search_fuzzy(name, settings.max_distance)
        if not results:
            print_fn("Review not found!")
            return
        print_fn("No exact match. Did you mean:")
        for n, r in enumerate(results, start=1):
            print_fn(f"{n}. {store.get(r.candidate_id).reviewer_name} ({r.tier.value})")
        picked = input_fn(f"Select 1-{len(results)} (0 to cancel): ").strip()
        if not picked.isdigit() or not 1 <= int(picked) <= len(results):
            print_fn("Deletion cancelled.")
            return
        index = results[int(picked) - 1].candidate_id

    print_fn("Found review:")
    print_fn(format_review(store.get(index)))
    if _confirm(input_fn, "Are you sure you want to delete this review?"):
        store.delete_at(index)
        print_fn("Review deleted successfully")
    else:
        print_fn("Deletion cancelled.")


# -- formatting helpers ------------------------------------------------------------


def format_review(review: Review) -> str:
    return "\n".join(
        [
            f"Reviewer: {review.reviewer_name}",
            f"Score: {review.satisfaction_score}/5",
            f"Date: {review.review_date}",
            f"Feedback: {review.feedback}",
        ]
    )


def format_table(store: ReviewStore, indices: list[int] | None = None) -> str:
    """Fixed-width listing; feedback longer than the column is cut with '...'."""
    if len(store) == 0:
        return "No reviews found."

    if indices is None:
        indices = list(range(len(store)))

    lines = [
        f"{'#':<4} {'Reviewer':<20} {'Score':<6} {'Date':<12} {'Feedback':<50}",
        f"{'-':<4} {'--------':<20} {'-----':<6} {'----':<12} {'--------':<50}",
    ]
    for i in indices:
        r = store.get(i)
        feedback = r.feedback
        if len(feedback) > _FEEDBACK_PREVIEW:
            feedback = feedback[: _FEEDBACK_PREVIEW - 3] + "..."
        lines.append(
            f"{i + 1:<4} {r.reviewer_name:<20} {r.satisfaction_score:<6} "
            f"{r.review_date:<12} {feedback:<50}".rstrip()
        )
    lines.append("")
    lines.append(f"Total reviews: {len(indices)}")
    return "\n".join(lines)


def format_statistics(store: ReviewStore) -> str:
    stats = store.statistics()
    if stats.total == 0:
        return "No reviews found."

    lines = [
        f"Total reviews: {stats.total}",
        f"Average satisfaction score: {stats.average_score:.2f}/5",
        f"Date range: {stats.earliest_date} to {stats.latest_date}",
    ]
    for score in sorted(stats.distribution, reverse=True):
        lines.append(f"{score} stars: {stats.distribution[score]}")
    return "\n".join(lines)


def _numbered(store: ReviewStore, index: int) -> dict[str, Any]:
    return {"number": index + 1, **store.get(index).to_dict()}


def _fuzzy_row(store: ReviewStore, result: MatchResult) -> dict[str, Any]:
    return {
        **_numbered(store, result.candidate_id),
        "distance": result.distance,
        "tier": result.tier.value,
    }


def _suggestions(store: ReviewStore, term: str, settings: Settings) -> list[dict[str, Any]]:
    return [
        {"name": name, "score": round(score, 1)}
        for name, score in store.suggest(term, threshold=settings.suggest_threshold)
    ]


def _index_from_number(store: ReviewStore, number: int) -> int:
    if not 1 <= number <= len(store):
        raise SystemExit(f"No review number {number} (have {len(store)})")
    return number - 1


def _max_distance(args: argparse.Namespace, settings: Settings) -> int:
    if args.max_distance is None:
        return settings.max_distance
    return validate_max_distance(args.max_distance)


def _confirm(input_fn: InputFn, question: str) -> bool:
    try:
        answer = input_fn(f"{question} (y/n): ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _print_json(out: dict[str, Any], *, compact: bool) -> None:
    if compact:
        print(json.dumps(out, ensure_ascii=False))
    else:
        print(json.dumps(out, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    raise SystemExit(main())
