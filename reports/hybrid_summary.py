# =============================================================================
# reports/hybrid_summary.py - Excel audit summary of a hybrid identity export
# =============================================================================

import logging
from datetime import datetime, timedelta
from typing import Optional

import pandas as pd

from core.models import OUTPUT_COLUMNS
from utils.csv_utils import CSVHandler


class HybridAuditSummary:
    """
    Audit views over a CSV produced by HybridIdentityReconciler.
    Reads the export into pandas and writes a multi-sheet Excel workbook.
    """

    def __init__(self, csv_path: str, stale_days: int = 90, encoding: str = 'utf-8-sig'):
        self.csv_path = csv_path
        self.stale_days = stale_days
        self.encoding = encoding
        self.data: Optional[pd.DataFrame] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_data(self) -> pd.DataFrame:
        """Load the export; every column is kept as text"""
        rows, headers = CSVHandler.read_csv(self.csv_path, encoding=self.encoding)
        self.data = pd.DataFrame(rows, columns=headers, dtype=str)

        missing = [col for col in OUTPUT_COLUMNS if col not in self.data.columns]
        if missing:
            raise ValueError(f"{self.csv_path} is not a hybrid identity export, missing columns: {missing}")

        self.logger.info(f"Loaded {len(self.data)} rows from {self.csv_path}")
        return self.data

    def _frame(self) -> pd.DataFrame:
        if self.data is None:
            self.load_data()
        return self.data

    def get_presence_summary(self) -> pd.DataFrame:
        """Row counts per combination of presence and enabled state"""
        df = self._frame()
        group_cols = ['InAD', 'InEntraID', 'AD_Enabled', 'Entra_Enabled']
        if df.empty:
            return pd.DataFrame(columns=group_cols + ['Users'])
        return (df.groupby(group_cols)
                .size()
                .reset_index(name='Users')
                .sort_values('Users', ascending=False, kind='stable')
                .reset_index(drop=True))

    def get_directory_only(self) -> pd.DataFrame:
        """AD users with no Entra ID account"""
        df = self._frame()
        return df[df['InEntraID'] == 'No'].reset_index(drop=True)

    def get_enabled_mismatches(self) -> pd.DataFrame:
        """Matched users enabled on one side and disabled on the other"""
        df = self._frame()
        matched = df[df['InEntraID'] == 'Yes']
        return matched[matched['AD_Enabled'] != matched['Entra_Enabled']].reset_index(drop=True)

    def get_stale_accounts(self, as_of: Optional[datetime] = None) -> pd.DataFrame:
        """Enabled AD users that never logged on or not within stale_days"""
        df = self._frame()
        as_of = as_of or datetime.now()
        cutoff = pd.Timestamp(as_of - timedelta(days=self.stale_days)).normalize()

        enabled = df[df['AD_Enabled'] == 'Enabled']
        last_logon = pd.to_datetime(enabled['AD_LastLogon'], format='%Y-%m-%d', errors='coerce')
        stale = enabled[last_logon.isna() | (last_logon < cutoff)]
        return stale.reset_index(drop=True)

    def export_summary(self, output_path: str) -> None:
        """Export all views to an Excel file with one sheet each"""
        df = self._frame()

        with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='All_Users', index=False)
            self.get_presence_summary().to_excel(writer, sheet_name='Presence_Summary', index=False)
            self.get_directory_only().to_excel(writer, sheet_name='Directory_Only', index=False)
            self.get_enabled_mismatches().to_excel(writer, sheet_name='Enabled_Mismatch', index=False)
            self.get_stale_accounts().to_excel(writer, sheet_name='Stale_Accounts', index=False)

        self.logger.info(f"Exported audit summary to {output_path}")
