from ec2.custom_ec2 import main

main()
