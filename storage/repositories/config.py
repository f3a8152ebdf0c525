"""
Config Repository.

Singleton access to the oracle_config row.
"""

from typing import Optional

from sqlalchemy.orm import Session

from storage.models.ledger import CONFIG_SINGLETON_ID, OracleConfigRecord
from storage.repositories.base import BaseRepository


class ConfigRepository(BaseRepository[OracleConfigRecord]):
    """Load/save the one configuration row."""
    
    def __init__(self, session: Session) -> None:
        super().__init__(session, OracleConfigRecord, "oracle_config")
    
    def may_load(self) -> Optional[OracleConfigRecord]:
        return self._get_by_id(CONFIG_SINGLETON_ID)
    
    def load(self) -> OracleConfigRecord:
        """
        Load the configuration row.
        
        Raises:
            RecordNotFoundError: If the ledger was never instantiated
        """
        return self._get_by_id_or_raise(CONFIG_SINGLETON_ID, id_field="config_id")
    
    def save(
        self,
        admin_address: str,
        transfer_channel_id: Optional[str],
        contract_name: str,
        contract_version: str,
    ) -> OracleConfigRecord:
        """Insert or overwrite the configuration row."""
        row = self.may_load()
        if row is None:
            return self._add(OracleConfigRecord(
                config_id=CONFIG_SINGLETON_ID,
                admin_address=admin_address,
                transfer_channel_id=transfer_channel_id,
                contract_name=contract_name,
                contract_version=contract_version,
            ))
        row.admin_address = admin_address
        row.transfer_channel_id = transfer_channel_id
        row.contract_name = contract_name
        row.contract_version = contract_version
        self._flush()
        return row
    
    def set_version(self, contract_version: str) -> None:
        row = self.load()
        row.contract_version = contract_version
        self._flush()
