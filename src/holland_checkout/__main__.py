from holland_checkout.cli import main

main()
