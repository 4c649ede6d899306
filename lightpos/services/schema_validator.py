from sqlalchemy import MetaData, inspect
import logging

logger = logging.getLogger(__name__)


class SchemaValidator:
    @staticmethod
    def check(engine, metadata: MetaData):
        """
        Compare the tables found in the store with the mapped tables.

        Returns:
            dict: {
                "valid": bool,
                "issues": list[str],
                "missing_tables": list[str],
                "missing_columns": list[str]
            }
        """
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())

        issues = []
        missing_tables = []
        missing_columns = []

        for table in metadata.sorted_tables:
            if table.name not in tables:
                missing_tables.append(table.name)
                issues.append(f"Missing '{table.name}' table")
                continue

            existing = {col['name'] for col in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name not in existing:
                    missing_columns.append(f"{table.name}.{column.name}")
                    issues.append(f"Missing '{column.name}' column in '{table.name}' table")

        valid = len(issues) == 0

        if not valid:
            logger.warning(f"Schema validation failed: {issues}")
        else:
            logger.info("✅ Database schema validation passed")

        return {
            "valid": valid,
            "issues": issues,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns
        }
