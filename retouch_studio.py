import logging
import sys

from PyQt5.QtWidgets import QApplication

from RS_Libs.EditorLib.editor_window import RetouchEditorWindow
from RS_Libs.settings import RetouchSettings


def main() -> None:
    settings = RetouchSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    window = RetouchEditorWindow(settings)
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
