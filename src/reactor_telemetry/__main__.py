from reactor_telemetry.main import main

main()
