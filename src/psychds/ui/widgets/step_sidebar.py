"""
Step sidebar for the dataset-creation wizard.

Lists the three wizard steps; steps the user may not enter yet are shown
disabled but stay clickable so the main window can explain why.
"""

from PySide6.QtWidgets import QListWidget, QListWidgetItem
from PySide6.QtCore import Qt, Signal, Slot

from psychds.core.navigation import FIRST_STEP, LAST_STEP, STEP_TITLES


class StepSidebar(QListWidget):
    """
    List of wizard steps.
    """

    # Signal emitted when the user clicks a step (step number)
    step_clicked = Signal(int)

    def __init__(self, parent=None):
        super().__init__(parent)

        self.setMaximumWidth(220)
        for step in range(FIRST_STEP, LAST_STEP + 1):
            item = QListWidgetItem(f"{step}. {STEP_TITLES[step]}")
            item.setData(Qt.ItemDataRole.UserRole, step)
            self.addItem(item)

        self.itemClicked.connect(self._on_item_clicked)

    def update_steps(self, current_step: int, reachable: list[int]):
        """
        Highlight the current step and grey out unreachable ones.

        Args:
            current_step: Active step.
            reachable: Steps the user may enter.
        """
        self.blockSignals(True)
        for row in range(self.count()):
            item = self.item(row)
            step = item.data(Qt.ItemDataRole.UserRole)
            font = item.font()
            font.setBold(step == current_step)
            item.setFont(font)
            if step in reachable:
                item.setForeground(self.palette().text())
            else:
                item.setForeground(Qt.GlobalColor.gray)
            if step == current_step:
                self.setCurrentItem(item)
        self.blockSignals(False)

    @Slot(QListWidgetItem)
    def _on_item_clicked(self, item: QListWidgetItem):
        self.step_clicked.emit(item.data(Qt.ItemDataRole.UserRole))
