from __future__ import annotations

import argparse
import mimetypes
import sys
from pathlib import Path

from app.config import settings
from app.context import RequestContext
from app.logging_config import configure_logging
from app.services.errors import ReceivingError, StoreUnavailable
from app.services.evidence_storage import StagedPhoto, get_evidence_storage
from app.services.store_factory import open_entity_store
from app.services.verification_workflow import VerificationWorkflow

HELP = 'Commands: <serial> | photo <path> | drop-photo | undo <equipment-id> | progress | quit'


class PrintChannel:
    def notify(self, notification) -> None:
        print(f'[{notification.level.value.upper()}] {notification.title}: {notification.message}')


def load_photo(path: Path) -> StagedPhoto:
    content_type = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'
    return StagedPhoto(filename=path.name, content_type=content_type, data=path.read_bytes())


def print_progress(workflow: VerificationWorkflow) -> None:
    progress = workflow.progress()
    if progress.is_empty:
        print('Progress: no equipment')
        return
    print(f'Progress: {progress.verified}/{progress.total} ({progress.percentage}%)')
    if progress.is_complete:
        print('All equipment in this delivery note is verified.')


def handle_line(workflow: VerificationWorkflow, line: str) -> bool:
    """Process one operator input; returns False when the session should end."""
    command, _, argument = line.strip().partition(' ')
    lowered = command.lower()
    if lowered in {'quit', 'exit'}:
        return False
    if lowered == 'help':
        print(HELP)
    elif lowered == 'progress':
        print_progress(workflow)
    elif lowered == 'photo':
        path = Path(argument.strip())
        if not path.is_file():
            print(f'Photo not found: {path}')
        else:
            workflow.stage_photo(load_photo(path))
            print(f'Photo staged: {path.name}')
    elif lowered == 'drop-photo':
        workflow.discard_photo()
        print('Staged photo discarded.')
    elif lowered == 'undo':
        if not argument.strip().isdigit():
            print('Usage: undo <equipment-id>')
        else:
            outcome = workflow.undo(int(argument.strip()))
            if outcome.success:
                print_progress(workflow)
    elif line.strip():
        outcome = workflow.submit(line)
        if outcome.success:
            print_progress(workflow)
        elif outcome.photo_staged:
            print('Photo is still staged for the next scan.')
    return True


def run(delivery_note_id: int, operator: str | None, lines) -> int:
    context = RequestContext(username=operator)
    with open_entity_store() as store:
        workflow = VerificationWorkflow(
            store,
            get_evidence_storage(),
            delivery_note_id,
            channel=PrintChannel(),
            context=context,
        )
        try:
            print_progress(workflow)
        except ReceivingError as exc:
            print(exc.message, file=sys.stderr)
            return 1
        try:
            print(HELP)
            for line in lines:
                if not handle_line(workflow, line):
                    break
        except StoreUnavailable as exc:
            print(f'Storage unavailable: {exc}', file=sys.stderr)
            return 2
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description='Verify received equipment of one delivery note by serial number.')
    parser.add_argument('--delivery-note', type=int, required=True, help='Delivery note id to validate.')
    parser.add_argument('--operator', default=None, help='Operator name recorded in the logs.')
    args = parser.parse_args()

    configure_logging(settings.log_level)
    sys.exit(run(args.delivery_note, args.operator, sys.stdin))


if __name__ == '__main__':
    main()
