"""
Schema tool: create or synchronize the tables declared in the configuration
"""
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from dbmodel.connectors.factory import ConnectorFactory
from dbmodel.core.config import Config
from dbmodel.core.exceptions import DbModelError
from dbmodel.utils.logger import setup_logging

logger = logging.getLogger(__name__)
load_dotenv()


def apply_schema(config: Config) -> int:
    """
    Create or synchronize every configured table

    Returns:
        Number of tables processed
    """
    schema = config.schema_
    database = ConnectorFactory.create_database(config.database.type, config.get_database_options())
    options = {}
    if database.driver == 'sqlite':
        options['preserve_data_on_rebuild'] = schema.preserve_data_on_rebuild

    with database:
        for table_config in schema.tables:
            table = ConnectorFactory.create_table(
                database, table_config.name, table_config.to_columns(), **options
            )
            if schema.mode == 'synchronize':
                table.synchronize()
            else:
                table.create(replace=schema.replace)
            logger.info(f"Table {table_config.name}: {schema.mode} done")
    return len(schema.tables)


def main():
    """Main function"""
    try:
        config_file = os.getenv('CONFIG_FILE', 'config.yaml')

        if not Path(config_file).exists():
            print(f"Error: Configuration file not found: {config_file}")
            sys.exit(1)

        print(f"Loading configuration from {config_file}")
        config = Config.from_yaml(config_file)

        setup_logging(config.logging.model_dump())

        logger.info(f"Database: {config.database.type} - {config.database.database or config.database.path}")
        logger.info(f"Schema mode: {config.schema_.mode}, {len(config.schema_.tables)} table(s)")

        count = apply_schema(config)
        logger.info(f"Processed {count} table(s)")

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except (DbModelError, ValueError) as e:
        logger.error(f"Schema update failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
