from workflow_guard.main import run


if __name__ == "__main__":
    run()
