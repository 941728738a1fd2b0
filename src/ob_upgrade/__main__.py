from ob_upgrade import main

main()
