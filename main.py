# main.py - Runs Navi through the dynamic CLI
# 	navi                          start the resident server (with console)
# 	navi get <key>                read a field from the running instance
# 	navi set <key> <value>        patch a field
# 	navi call <action> [args...]  run an action; starts the server if needed
#
# navi/state.py, navi/routes.py - declared state and action registration
# navi/server.py - FastAPI surface + uvicorn host for the resident instance
# navi/dispatcher.py - get / set / call against the local or the remote instance
# navi/llm.py, navi/stt.py, navi/tts.py, navi/record.py - voice adapters

from navi.assistant import main

if __name__ == "__main__":
	main()
