import uvicorn

from meeting_coach.config import Config


def main():
    uvicorn.run("meeting_coach.main:app", host=Config.HOST, port=Config.PORT, log_level=Config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
