from services.board_service.main import create_app

app = create_app()
