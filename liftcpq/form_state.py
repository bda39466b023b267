"""
Persisted wizard progress.

Each wizard run is a WizardSession row holding the latest FormData snapshot
and the step the user was on. Backups are point-in-time copies of the
snapshot that can be restored later.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from . import models
from .schemas import FormData
from .wizard import FIRST_STEP, LAST_STEP

logger = logging.getLogger(__name__)


class FormStateManager:
    """Save / load / back up wizard state for one database session."""

    def __init__(self, db: Session):
        self.db = db

    # --- Sessions ---

    def start_session(self, form_data: Optional[FormData] = None) -> models.WizardSession:
        session = models.WizardSession(
            id=str(uuid.uuid4()),
            current_step=FIRST_STEP,
            form_data_json=(form_data or FormData()).model_dump(mode="json"),
            saved_at=datetime.utcnow(),
            status="active",
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def get_session(self, session_id: str) -> Optional[models.WizardSession]:
        return self.db.query(models.WizardSession).filter(
            models.WizardSession.id == session_id,
        ).first()

    def _require_session(self, session_id: str) -> models.WizardSession:
        session = self.get_session(session_id)
        if session is None:
            raise KeyError(session_id)
        return session

    # --- Form data ---

    def save_form_data(self, session_id: str, form_data: FormData) -> datetime:
        session = self._require_session(session_id)
        session.form_data_json = form_data.model_dump(mode="json")
        session.saved_at = datetime.utcnow()
        session.updated_at = session.saved_at
        flag_modified(session, "form_data_json")
        self.db.commit()
        return session.saved_at

    def load_form_data(self, session_id: str) -> Optional[FormData]:
        session = self.get_session(session_id)
        if session is None or not session.form_data_json:
            return None
        try:
            return FormData.model_validate(session.form_data_json)
        except ValueError as e:
            # Snapshot from an older schema: treat as no saved data
            logger.warning("Discarding unreadable form data for session %s: %s", session_id, e)
            return None

    def clear_form_data(self, session_id: str) -> None:
        session = self._require_session(session_id)
        session.form_data_json = None
        session.current_step = FIRST_STEP
        session.saved_at = None
        self.db.commit()

    def has_saved_data(self, session_id: str) -> bool:
        """True once there is a product config or at least the customer's first name."""
        data = self.load_form_data(session_id)
        if data is None:
            return False
        return bool(data.product_configs) or bool(data.customer_info.first_name)

    # --- Current step ---

    def save_current_step(self, session_id: str, step: int) -> None:
        session = self._require_session(session_id)
        session.current_step = step
        self.db.commit()

    def load_current_step(self, session_id: str) -> int:
        session = self.get_session(session_id)
        if session is None:
            return FIRST_STEP
        step = session.current_step
        if not isinstance(step, int) or not FIRST_STEP <= step <= LAST_STEP:
            return FIRST_STEP
        return step

    # --- Backups ---

    def create_backup(self, session_id: str, label: Optional[str] = None) -> Optional[models.FormBackup]:
        """Copy the current snapshot. No snapshot → nothing to back up, returns None."""
        session = self._require_session(session_id)
        if not session.form_data_json:
            return None
        backup = models.FormBackup(
            session_id=session_id,
            label=label or "Auto backup",
            data_json=dict(session.form_data_json),
        )
        self.db.add(backup)
        self.db.commit()
        self.db.refresh(backup)
        return backup

    def list_backups(self, session_id: str) -> list:
        return self.db.query(models.FormBackup).filter(
            models.FormBackup.session_id == session_id,
        ).order_by(models.FormBackup.created_at.desc(), models.FormBackup.id.desc()).all()

    def restore_from_backup(self, session_id: str, backup_id: int) -> Optional[FormData]:
        backup = self.db.query(models.FormBackup).filter(
            models.FormBackup.id == backup_id,
            models.FormBackup.session_id == session_id,
        ).first()
        if backup is None:
            return None
        form_data = FormData.model_validate(backup.data_json)
        self.save_form_data(session_id, form_data)
        logger.info("Restored session %s from backup %s (%s)", session_id, backup_id, backup.label)
        return form_data

    def mark_submitted(self, session_id: str) -> None:
        """Clear saved progress after a successful submission."""
        session = self.get_session(session_id)
        if session is None:
            return
        self.clear_form_data(session_id)
        session.status = "submitted"
        self.db.commit()
