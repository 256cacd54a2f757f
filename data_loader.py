import logging
import os
import pandas as pd

logger = logging.getLogger(__name__)

ACM2_TO_AM2 = 1e4


class DataLoader:
    """
    Reads reference polarization data and operating-point schedules from CSV
    files and writes solved results back to disk. Column names are
    standardized for comparison with the simulation output.
    """

    REFERENCE_COLUMNS = {
        'Current Density (A/cm^2)': 'J',
        'Cell Voltage (V)': 'V_exp',
    }
    SCHEDULE_COLUMNS = {
        'Current Density (A/cm^2)': 'J',
        'Stack Temperature (K)': 'T_stack',
    }

    def _read_numeric(self, filepath: str, columns: dict, label: str) -> pd.DataFrame:
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"{label} file not found: {filepath}")

        try:
            df = pd.read_csv(filepath)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise ValueError(f"Error reading CSV file for {label} at '{filepath}': {e}")

        if df.empty:
            raise ValueError(f"The {label} file at '{filepath}' is empty.")

        missing = [col for col in columns if col not in df.columns]
        if missing:
            raise ValueError(f"Missing expected column(s) {missing} in {label} file '{filepath}'.")

        df_processed = df[list(columns)].rename(columns=columns)
        for col in columns.values():
            df_processed[col] = pd.to_numeric(df_processed[col], errors='coerce')

        initial_rows = len(df_processed)
        df_processed = df_processed.dropna().reset_index(drop=True)
        dropped_rows = initial_rows - len(df_processed)
        if dropped_rows > 0:
            logger.warning("Dropped %d rows with non-numeric or missing values in %s file '%s'.",
                           dropped_rows, label, filepath)

        if df_processed.empty:
            raise ValueError(
                f"All rows were dropped from {label} file '{filepath}' due to missing or invalid values."
            )

        # A/cm^2 on disk, A/m^2 internally
        df_processed['J'] = df_processed['J'] * ACM2_TO_AM2
        return df_processed

    def load_reference_data(self, filepath: str) -> pd.DataFrame:
        """
        Loads a reference polarization curve.

        Args:
            filepath (str): CSV with 'Current Density (A/cm^2)' and 'Cell Voltage (V)'.

        Returns:
            pd.DataFrame: Columns 'J' (A/m^2) and 'V_exp' (V), sorted by current density.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is unreadable, empty, or lacks the expected columns.
        """
        df = self._read_numeric(filepath, self.REFERENCE_COLUMNS, "reference polarization")
        return df.sort_values('J').reset_index(drop=True)

    def load_operating_schedule(self, filepath: str) -> pd.DataFrame:
        """
        Loads a list of operating points to solve, in file order.

        Returns:
            pd.DataFrame: Columns 'J' (A/m^2) and 'T_stack' (K).
        """
        df = self._read_numeric(filepath, self.SCHEDULE_COLUMNS, "operating schedule")
        negative = df['J'] < 0.0
        if negative.any():
            raise ValueError(
                f"Operating schedule '{filepath}' contains {int(negative.sum())} negative current densities; "
                "only discharging operation is modelled."
            )
        return df

    def save_results(self, results: pd.DataFrame, filepath: str) -> str:
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        results.to_csv(filepath, index=False)
        logger.info("Wrote %d rows to %s", len(results), filepath)
        return filepath
