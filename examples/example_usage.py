from datetime import date

from waivefee import WaiverConfig, WaiverSnapshot, build_report_tables, sample_roster
from waivefee.export import write_csv


def main() -> None:
    config = WaiverConfig.default()
    snapshot = WaiverSnapshot.build(sample_roster(config.family_count), None, config)
    context = snapshot.context(date(2026, 10, 19))

    records = snapshot.view(context)
    reports = build_report_tables(records, list(snapshot.calendar.years), snapshot.calendar.terms_per_year)

    output_dir = "outputs"
    write_csv(f"{output_dir}/waiver_records.csv", reports.records, _headers(reports.records))
    write_csv(f"{output_dir}/summary_by_term.csv", reports.summary_by_term, _headers(reports.summary_by_term))
    write_csv(f"{output_dir}/summary_by_year.csv", reports.summary_by_year, _headers(reports.summary_by_year))
    write_csv(f"{output_dir}/summary_matrix.csv", reports.matrix, _headers(reports.matrix))


def _headers(rows):
    return list(rows[0].keys()) if rows else []


if __name__ == "__main__":
    main()
