from offline_images.cli import app

app(prog_name="offline-images")
