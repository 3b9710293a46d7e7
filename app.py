import logging
from pathlib import Path

from flask import Flask

from routes import register_blueprints
from services.resolutions import (
    DocumentAssembler,
    EntityDirectory,
    ResolutionIdService,
    TemplateLoader,
)

logger = logging.getLogger(__name__)


def create_app(config_object='config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Fail fast on bad template definitions
    TemplateLoader.load_all(app.config['DOCUMENTS_DIR'])

    entities_file = Path(app.config['ENTITIES_FILE'])
    directory = None
    if entities_file.exists():
        directory = EntityDirectory.from_file(entities_file)
    else:
        logger.warning(f"Entity directory not found: {entities_file}")

    # Register starts empty if the file is missing or unreadable
    id_service = ResolutionIdService.from_file(app.config['RESOLUTION_REGISTER_PATH'])
    app.extensions['resolution_assembler'] = DocumentAssembler(id_service, directory)

    # Register blueprints
    register_blueprints(app)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=5005, debug=True)
