"""
Result reporting for the bundler latency benchmark.
Console tables plus detail & summary CSV files.
"""
import csv
import os
import typing as t

from .harness import AggregateResult, TrialResult, TrialSet, TrialSuccess

DETAIL_COLUMNS = [
    "UserOp Hash",
    "Submission Latency (ms)",
    "On-Chain Latency (ms)",
    "Total Latency (ms)",
    "Tx Hash",
]
SUMMARY_COLUMNS = [
    "Bundler",
    "Avg Submission Latency (ms)",
    "Avg On-Chain Latency (ms)",
    "Avg Total Latency (ms)",
]
TARGET_COLUMN = "Bundler"

FAILED = "Failed"
ERROR = "Error"
NOT_AVAILABLE = "N/A"


def format_number(value: t.Union[int, float]) -> str:
    """
    Render latencies stably: integral values without a trailing ".0".
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def detail_row(result: TrialResult, include_target: bool) -> t.List[str]:
    if isinstance(result, TrialSuccess):
        row = [
            result.user_op_hash,
            format_number(result.submission_latency_ms),
            format_number(result.on_chain_latency_ms),
            format_number(result.total_latency_ms),
            result.tx_hash,
        ]
    else:
        row = [FAILED, ERROR, ERROR, ERROR, NOT_AVAILABLE]
    if include_target:
        row.insert(0, result.target)
    return row


def summary_row(aggregate: AggregateResult) -> t.List[str]:
    return [
        aggregate.target,
        format_number(aggregate.avg_submission_latency_ms),
        format_number(aggregate.avg_on_chain_latency_ms),
        format_number(aggregate.avg_total_latency_ms),
    ]


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def write_detail_csv(
    path: str, trial_sets: t.Iterable[TrialSet], include_target: bool = True
) -> None:
    """
    One row per trial, in execution order, header always present.
    """
    header = ([TARGET_COLUMN] if include_target else []) + DETAIL_COLUMNS
    _ensure_parent(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(header)
        for trial_set in trial_sets:
            for result in trial_set:
                writer.writerow(detail_row(result, include_target))


def write_summary_csv(path: str, aggregates: t.Mapping[str, AggregateResult]) -> None:
    """
    One row per target that had at least one successful trial.
    """
    _ensure_parent(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(SUMMARY_COLUMNS)
        for aggregate in aggregates.values():
            writer.writerow(summary_row(aggregate))


def format_table(header: t.List[str], rows: t.List[t.List[str]]) -> str:
    """
    Plain fixed-width table with an index column.
    """
    header = ["(index)"] + header
    rows = [[str(i)] + row for i, row in enumerate(rows)]
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def line(cells: t.List[str]) -> str:
        return " | ".join(cell.ljust(w) for cell, w in zip(cells, widths))

    separator = "-+-".join("-" * w for w in widths)
    return "\n".join([line(header), separator] + [line(row) for row in rows])


def _with_unit(cell: str) -> str:
    return cell if cell == ERROR else f"{cell} ms"


def print_trial_table(trial_sets: t.Iterable[TrialSet], include_target: bool = True) -> None:
    header = ([TARGET_COLUMN] if include_target else []) + [
        "UserOp Hash", "Submission Latency", "On-Chain Latency", "Total Latency", "Tx Hash",
    ]
    offset = 1 if include_target else 0
    rows = []
    for trial_set in trial_sets:
        for result in trial_set:
            row = detail_row(result, include_target)
            for i in range(offset + 1, offset + 4):
                row[i] = _with_unit(row[i])
            rows.append(row)
    print(format_table(header, rows))


def print_aggregate_table(aggregates: t.Mapping[str, AggregateResult]) -> None:
    header = ["Bundler", "submissionLatency", "onChainLatency", "totalLatency", "successes"]
    rows = [
        summary_row(a) + [f"{a.success_count}/{a.trial_count}"]
        for a in aggregates.values()
    ]
    print(format_table(header, rows))


def save_results(
    detail_path: str,
    summary_path: str,
    trial_sets: t.Mapping[str, TrialSet],
    aggregates: t.Mapping[str, AggregateResult],
    include_target: bool = True,
) -> None:
    """
    Print both tables and write both CSV files.
    """
    print("\n=== Latency Results ===")
    print_trial_table(trial_sets.values(), include_target)
    print("\n=== Average Latency Results ===")
    print_aggregate_table(aggregates)

    write_detail_csv(detail_path, trial_sets.values(), include_target)
    write_summary_csv(summary_path, aggregates)
    print(f"Results saved to {detail_path}")
    print(f"Average results saved to {summary_path}")
