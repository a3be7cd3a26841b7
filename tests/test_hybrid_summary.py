from datetime import datetime

import openpyxl
import pytest

from core.models import CloudRecord, DirectoryRecord, OUTPUT_COLUMNS
from reconcilers.field_resolution import merge_records
from reports.hybrid_summary import HybridAuditSummary
from utils.csv_utils import CSVSink

AS_OF = datetime(2024, 6, 30)


@pytest.fixture
def export_csv(tmp_path):
    path = tmp_path / "audit.csv"
    sink = CSVSink(str(path))
    sink.open()

    users = [
        # active, in both, recent logon
        (DirectoryRecord(username="active", enabled=True, last_logon="2024-06-20T09:00:00"),
         CloudRecord(username="active", enabled=True)),
        # AD enabled, cloud disabled
        (DirectoryRecord(username="mismatch", enabled=True, last_logon="2024-06-01T09:00:00"),
         CloudRecord(username="mismatch", enabled=False)),
        # AD only, stale logon
        (DirectoryRecord(username="stale", enabled=True, last_logon="2023-01-01T09:00:00"), None),
        # AD only, never logged on
        (DirectoryRecord(username="never", enabled=True), None),
        # disabled everywhere
        (DirectoryRecord(username="gone", enabled=False), CloudRecord(username="gone", enabled=False)),
    ]
    for directory, cloud in users:
        sink.write(merge_records(directory, cloud))
    return path


class TestHybridAuditSummary:

    def test_directory_only(self, export_csv):
        summary = HybridAuditSummary(str(export_csv))
        assert list(summary.get_directory_only()['Username']) == ["stale", "never"]

    def test_enabled_mismatches(self, export_csv):
        summary = HybridAuditSummary(str(export_csv))
        assert list(summary.get_enabled_mismatches()['Username']) == ["mismatch"]

    def test_stale_accounts(self, export_csv):
        summary = HybridAuditSummary(str(export_csv), stale_days=90)
        assert list(summary.get_stale_accounts(as_of=AS_OF)['Username']) == ["stale", "never"]

    def test_presence_summary(self, export_csv):
        summary = HybridAuditSummary(str(export_csv))
        presence = summary.get_presence_summary()

        assert presence['Users'].sum() == 5
        both_enabled = presence[(presence['InEntraID'] == 'Yes')
                                & (presence['AD_Enabled'] == 'Enabled')
                                & (presence['Entra_Enabled'] == 'Enabled')]
        assert both_enabled['Users'].tolist() == [1]

    def test_header_only_export(self, tmp_path):
        path = tmp_path / "empty.csv"
        CSVSink(str(path)).open()
        summary = HybridAuditSummary(str(path))

        assert summary.get_presence_summary().empty
        assert summary.get_stale_accounts(as_of=AS_OF).empty

    def test_blank_cells_stay_text(self, export_csv):
        data = HybridAuditSummary(str(export_csv)).load_data()
        never = data[data['Username'] == "never"].iloc[0]

        assert never['AD_LastLogon'] == ""
        assert never['Entra_Created'] == ""
        assert not data.isna().any().any()

    def test_missing_export(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            HybridAuditSummary(str(tmp_path / "absent.csv")).load_data()

    def test_rejects_foreign_csv(self, tmp_path):
        path = tmp_path / "other.csv"
        path.write_text("username,email\njdoe,jdoe@contoso.com\n", encoding='utf-8')

        with pytest.raises(ValueError):
            HybridAuditSummary(str(path)).load_data()

    def test_export_summary_workbook(self, export_csv, tmp_path):
        output = tmp_path / "summary.xlsx"
        HybridAuditSummary(str(export_csv)).export_summary(str(output))

        workbook = openpyxl.load_workbook(output)
        assert workbook.sheetnames == [
            'All_Users', 'Presence_Summary', 'Directory_Only', 'Enabled_Mismatch', 'Stale_Accounts'
        ]
        header = [cell.value for cell in workbook['All_Users'][1]]
        assert header == OUTPUT_COLUMNS
