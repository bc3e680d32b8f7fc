from ndizi import create_app

app = create_app()
